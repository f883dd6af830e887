import os
import stat

import pytest

from anchore_syft.image import Image, ImageLoadError, SourceType
from anchore_syft.scope import (
    AllLayersResolver,
    Cleanup,
    DirectoryResolver,
    DirectorySource,
    ImageSource,
    ImageSquashResolver,
    Option,
    Scope,
    ScopeError,
    get_scope,
    new_scope,
    new_scope_from_dir,
    new_scope_from_image,
)


class FakeProvider:
    """
    Stands in for an ImageProvider, counting cleanups and returning a fixed image or raising
    """

    def __init__(self, img=None, raises=None):
        self.img = img
        self.raises = raises
        self.requested = []
        self.cleanups = 0

    def get_image(self, image_spec):
        self.requested.append(image_spec)
        if self.raises is not None:
            raise self.raises
        return self.img

    def cleanup(self):
        self.cleanups += 1


class FakeStat:
    def __init__(self, mode):
        self.st_mode = mode


class FakeFS:
    def __init__(self, mode=None):
        self.mode = mode

    def stat(self, path):
        if self.mode is None:
            raise FileNotFoundError(path)
        return FakeStat(self.mode)


def registry_detector(user_input):
    return SourceType.REGISTRY, user_input


class TestScope:
    def test_requires_exactly_one_source(self, tmp_path):
        resolver = DirectoryResolver(str(tmp_path))
        with pytest.raises(ScopeError):
            Scope(Option.SQUASHED_SCOPE, resolver)
        with pytest.raises(ScopeError):
            Scope(
                Option.SQUASHED_SCOPE,
                resolver,
                img_src=ImageSource(img=object()),
                dir_src=DirectorySource(path=str(tmp_path)),
            )

    def test_requires_resolver(self, tmp_path):
        with pytest.raises(ScopeError):
            Scope(Option.SQUASHED_SCOPE, None, dir_src=DirectorySource(str(tmp_path)))

    def test_sources_are_immutable(self, tmp_path):
        source = DirectorySource(path=str(tmp_path))
        with pytest.raises(Exception):
            source.path = "/elsewhere"


class TestNewScopeFromParts:
    def test_from_dir(self, tmp_path):
        s = new_scope_from_dir(str(tmp_path))
        assert s.source == DirectorySource(path=str(tmp_path))
        assert s.img_src is None
        assert isinstance(s.resolver, DirectoryResolver)

    @pytest.mark.parametrize(
        "option, resolver_type",
        [
            (Option.SQUASHED_SCOPE, ImageSquashResolver),
            (Option.ALL_LAYERS_SCOPE, AllLayersResolver),
        ],
    )
    def test_from_image(self, standard_image, option, resolver_type):
        s = new_scope_from_image(standard_image, option)
        assert s.source == ImageSource(img=standard_image)
        assert s.dir_src is None
        assert s.option == option
        assert isinstance(s.resolver, resolver_type)

    def test_from_image_unknown_option(self, standard_image):
        with pytest.raises(ScopeError):
            new_scope_from_image(standard_image, Option.UNKNOWN_SCOPE)

    def test_from_no_image(self):
        with pytest.raises(ScopeError):
            new_scope_from_image(None, Option.SQUASHED_SCOPE)


class TestNewScopeDirectory:
    def test_directory(self, tmp_path):
        s, cleanup = new_scope("dir:" + str(tmp_path), Option.SQUASHED_SCOPE)
        assert s.source == DirectorySource(path=str(tmp_path))
        cleanup()
        cleanup()

    def test_option_by_name(self, tmp_path):
        s, _ = new_scope("dir:" + str(tmp_path), "all-layers")
        assert s.option == Option.ALL_LAYERS_SCOPE
        assert "option=all-layers" in repr(s)

    def test_missing_directory(self):
        with pytest.raises(ScopeError) as error:
            new_scope("dir:/does/not/exist", Option.SQUASHED_SCOPE, fs=FakeFS())
        assert "/does/not/exist" in str(error.value)
        error.value.cleanup()

    def test_not_a_directory(self):
        fs = FakeFS(stat.S_IFREG | 0o644)
        with pytest.raises(ScopeError) as error:
            new_scope("dir:/etc/passwd", Option.SQUASHED_SCOPE, fs=fs)
        assert "not a directory" in str(error.value)

    def test_unknown_scheme(self, tmp_path):
        missing = os.path.join(str(tmp_path), "missing")
        with pytest.raises(ScopeError) as error:
            new_scope(missing, Option.SQUASHED_SCOPE)
        assert error.value.user_input == missing


class TestNewScopeImage:
    def test_image(self, standard_image):
        provider = FakeProvider(img=standard_image)
        s, cleanup = new_scope(
            "alpine:3.12",
            Option.ALL_LAYERS_SCOPE,
            image_detector=registry_detector,
            provider=provider,
        )

        assert provider.requested == ["registry:alpine:3.12"]
        assert s.source == ImageSource(img=standard_image)
        assert isinstance(s.resolver, AllLayersResolver)

        cleanup()
        cleanup()
        assert provider.cleanups == 1

    def test_option_by_name(self, standard_image):
        provider = FakeProvider(img=standard_image)
        s, cleanup = new_scope(
            "alpine:3.12",
            " Squashed ",
            image_detector=registry_detector,
            provider=provider,
        )

        assert s.option == Option.SQUASHED_SCOPE
        assert isinstance(s.resolver, ImageSquashResolver)
        cleanup()

    def test_load_failure_carries_cleanup(self):
        provider = FakeProvider(raises=ImageLoadError("boom", "registry:alpine"))
        with pytest.raises(ScopeError) as error:
            new_scope(
                "alpine",
                Option.SQUASHED_SCOPE,
                image_detector=registry_detector,
                provider=provider,
            )

        assert "boom" in error.value.cause
        assert isinstance(error.value.__cause__, ImageLoadError)
        error.value.cleanup()
        error.value.cleanup()
        assert provider.cleanups == 1

    def test_no_image_is_a_failure(self):
        provider = FakeProvider(img=None)
        with pytest.raises(ScopeError) as error:
            new_scope(
                "alpine",
                Option.SQUASHED_SCOPE,
                image_detector=registry_detector,
                provider=provider,
            )
        error.value.cleanup()
        assert provider.cleanups == 1

    def test_unknown_option_carries_cleanup(self, standard_image):
        provider = FakeProvider(img=standard_image)
        with pytest.raises(ScopeError) as error:
            new_scope(
                "alpine",
                Option.UNKNOWN_SCOPE,
                image_detector=registry_detector,
                provider=provider,
            )
        error.value.cleanup()
        assert provider.cleanups == 1

    def test_oci_directory_end_to_end(self, oci_layout):
        oci_dir = oci_layout()
        s, cleanup = new_scope(oci_dir, Option.SQUASHED_SCOPE)
        try:
            assert isinstance(s.source.img, Image)
            assert s.resolver.file_contents_by_path("/etc/os-release") == b"debian 11"
        finally:
            cleanup()


class TestGetScope:
    def test_cleans_up_on_success(self, standard_image):
        provider = FakeProvider(img=standard_image)
        with get_scope(
            "alpine", image_detector=registry_detector, provider=provider
        ) as s:
            assert s.option == Option.SQUASHED_SCOPE
            assert provider.cleanups == 0
        assert provider.cleanups == 1

    def test_cleans_up_when_body_raises(self, standard_image):
        provider = FakeProvider(img=standard_image)
        with pytest.raises(RuntimeError):
            with get_scope(
                "alpine",
                "all-layers",
                image_detector=registry_detector,
                provider=provider,
            ):
                raise RuntimeError("cataloger failed")
        assert provider.cleanups == 1

    def test_cleans_up_on_construction_failure(self):
        provider = FakeProvider(raises=ImageLoadError("boom", "alpine"))
        with pytest.raises(ScopeError):
            with get_scope(
                "alpine", image_detector=registry_detector, provider=provider
            ):
                pass
        assert provider.cleanups == 1

    def test_configured_option(self, standard_image, default_config):
        default_config["scope"] = "all-layers"
        provider = FakeProvider(img=standard_image)
        with get_scope(
            "alpine", image_detector=registry_detector, provider=provider
        ) as s:
            assert s.option == Option.ALL_LAYERS_SCOPE


def test_cleanup_runs_once():
    calls = []
    cleanup = Cleanup(lambda: calls.append(1))
    cleanup()
    cleanup()
    assert calls == [1]
