"""
Common fixtures for use in any test, not specific to a thing being tested.

"""
import collections
import hashlib
import io
import json
import os
import tarfile

import pytest

from anchore_syft.configuration import localconfig
from anchore_syft.subsys import logger

logger.enable_test_logging()

Symlink = collections.namedtuple("Symlink", ["target"])
Hardlink = collections.namedtuple("Hardlink", ["target"])

LAYER_MEDIA_TYPE = "application/vnd.oci.image.layer.v1.tar"
MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"
CONFIG_MEDIA_TYPE = "application/vnd.oci.image.config.v1+json"


def build_layer_tar(entries) -> bytes:
    """
    Build an uncompressed layer archive from a dict of path -> entry. An entry is file content (str or bytes), None
    for a directory, or a Symlink/Hardlink.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT) as tf:
        for path, entry in entries.items():
            info = tarfile.TarInfo(name=path.lstrip("/"))
            if entry is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
            elif isinstance(entry, Symlink):
                info.type = tarfile.SYMTYPE
                info.linkname = entry.target
                tf.addfile(info)
            elif isinstance(entry, Hardlink):
                info.type = tarfile.LNKTYPE
                info.linkname = entry.target.lstrip("/")
                tf.addfile(info)
            else:
                data = entry.encode("utf-8") if isinstance(entry, str) else entry
                info.size = len(data)
                info.mode = 0o644
                tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _write_blob(oci_dir, data: bytes):
    value = hashlib.sha256(data).hexdigest()
    with open(os.path.join(oci_dir, "blobs", "sha256", value), "wb") as FH:
        FH.write(data)
    return "sha256:{}".format(value), len(data)


def write_oci_layout(oci_dir, layers):
    """
    Write an OCI image layout with one layer per dict in layers (see build_layer_tar), bottom layer first
    """
    os.makedirs(os.path.join(oci_dir, "blobs", "sha256"), exist_ok=True)

    layer_descriptors = []
    for entries in layers:
        digest, size = _write_blob(oci_dir, build_layer_tar(entries))
        layer_descriptors.append(
            {"mediaType": LAYER_MEDIA_TYPE, "digest": digest, "size": size}
        )

    config = {
        "architecture": "amd64",
        "os": "linux",
        "rootfs": {
            "type": "layers",
            "diff_ids": [d["digest"] for d in layer_descriptors],
        },
    }
    config_digest, config_size = _write_blob(oci_dir, json.dumps(config).encode("utf-8"))

    manifest = {
        "schemaVersion": 2,
        "mediaType": MANIFEST_MEDIA_TYPE,
        "config": {
            "mediaType": CONFIG_MEDIA_TYPE,
            "digest": config_digest,
            "size": config_size,
        },
        "layers": layer_descriptors,
    }
    manifest_digest, manifest_size = _write_blob(
        oci_dir, json.dumps(manifest).encode("utf-8")
    )

    index = {
        "schemaVersion": 2,
        "manifests": [
            {
                "mediaType": MANIFEST_MEDIA_TYPE,
                "digest": manifest_digest,
                "size": manifest_size,
                "platform": {"architecture": "amd64", "os": "linux"},
            }
        ],
    }
    with open(os.path.join(oci_dir, "index.json"), "w") as FH:
        FH.write(json.dumps(index))
    with open(os.path.join(oci_dir, "oci-layout"), "w") as FH:
        FH.write(json.dumps({"imageLayoutVersion": "1.0.0"}))

    return oci_dir


GEMFILE_LOCK = """GEM
  remote: https://rubygems.org/
  specs:
    actionmailer (4.1.1)
      actionpack (= 4.1.1)
    rake (13.0.1)

PLATFORMS
  ruby

DEPENDENCIES
  rake

BUNDLED WITH
   2.1.4
"""

GEMSPEC = """# -*- encoding: utf-8 -*-
Gem::Specification.new do |s|
  s.name = "bundler".freeze
  s.version = "2.1.4"
  s.authors = ["Andr\\u00E9 Arko".freeze, "Samuel Giddins".freeze]
  s.homepage = "https://bundler.io".freeze
  s.licenses = ["MIT".freeze]
  s.files = ["exe/bundle".freeze, "exe/bundler".freeze]
end
"""

# a three layer image exercising overrides, whiteouts, opaque directories and links
STANDARD_IMAGE_LAYERS = [
    {
        "etc": None,
        "etc/os-release": "debian 10",
        "etc/passwd": "root:x:0:0",
        "opt": None,
        "opt/data": None,
        "opt/data/a.txt": "a",
        "opt/data/b.txt": "b",
        "app": None,
        "app/Gemfile.lock": GEMFILE_LOCK,
        "usr/lib/ruby/gems/2.7.0/specifications/bundler-2.1.4.gemspec": GEMSPEC,
    },
    {
        "etc/os-release": "debian 11",
        "etc/.wh.passwd": "",
        "opt/data/.wh..wh..opq": "",
        "opt/data/c.txt": "c",
        "os-release-link": Symlink("etc/os-release"),
    },
    {
        "app/new.txt": "new",
        "app/hardlinked": Hardlink("app/new.txt"),
    },
]


@pytest.fixture(autouse=True)
def default_config():
    localconfig.load_defaults()
    yield localconfig.get_config()
    localconfig.load_defaults()


@pytest.fixture
def oci_layout(tmp_path):
    """
    Returns a function that writes an OCI layout for the given layers and returns its path
    """
    counter = {"n": 0}

    def _build(layers=None, name=None):
        counter["n"] += 1
        oci_dir = str(tmp_path / (name or "oci-{}".format(counter["n"])))
        return write_oci_layout(
            oci_dir, layers if layers is not None else STANDARD_IMAGE_LAYERS
        )

    return _build


@pytest.fixture
def standard_image(oci_layout):
    from anchore_syft.image import Image

    return Image(oci_layout(), reference="standard").read()
