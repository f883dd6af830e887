"""
A scope captures the source to be cataloged (a directory or an image), the option it is viewed with, and the
resolver catalogers use to read from it.

"""
import os
import stat
import threading
from contextlib import contextmanager
from dataclasses import dataclass

import anchore_syft.configuration.localconfig
from anchore_syft.image import Image, ImageProvider
from anchore_syft.scope.option import Option, parse_option
from anchore_syft.scope.resolvers import (
    AllLayersResolver,
    DirectoryResolver,
    ImageSquashResolver,
)
from anchore_syft.scope.scheme import Scheme, SchemeDetectionError, detect_scheme
from anchore_syft.subsys import logger
from anchore_syft.utils import SyftException


def _noop():
    pass


class Cleanup:
    """
    Wraps a release function so that it runs at most once, no matter how many times or from how many threads it
    is called.
    """

    def __init__(self, fn=None):
        self._fn = fn or _noop
        self._lock = threading.Lock()
        self._done = False

    def __call__(self):
        with self._lock:
            if self._done:
                return
            self._done = True
        self._fn()


class ScopeError(SyftException):
    def __init__(self, msg, user_input=None, cause=None, cleanup=None):
        self.msg = msg
        self.user_input = user_input
        self.cause = str(cause) if cause is not None else None
        self._cleanup = cleanup or Cleanup()

    @property
    def cleanup(self):
        """
        Release function for anything acquired before the failure, callers must invoke it
        """
        return self._cleanup

    def __repr__(self):
        if self.cause:
            return "{} (input={!r}): {}".format(self.msg, self.user_input, self.cause)
        return "{} (input={!r})".format(self.msg, self.user_input)

    def __str__(self):
        return self.__repr__()


@dataclass(frozen=True)
class DirectorySource:
    path: str


@dataclass(frozen=True)
class ImageSource:
    img: Image


class Scope:
    """
    Exactly one of the image or directory source is populated, and it determines the resolver implementation.
    """

    def __init__(self, option, resolver, img_src=None, dir_src=None):
        if (img_src is None) == (dir_src is None):
            raise ScopeError(
                "a scope requires exactly one of an image source or a directory source"
            )
        if resolver is None:
            raise ScopeError("a scope requires a resolver")

        self.option = as_option(option)
        self.resolver = resolver
        self.img_src = img_src
        self.dir_src = dir_src

    def __repr__(self):
        return "<Scope option={} source={!r}>".format(self.option.value, self.source)

    @property
    def source(self):
        """
        The configured data source, either a DirectorySource or an ImageSource
        """
        if self.img_src is not None:
            return self.img_src
        return self.dir_src


def as_option(option):
    if isinstance(option, Option):
        return option
    return parse_option(str(option))


def get_image_resolver(img, option):
    if option == Option.SQUASHED_SCOPE:
        return ImageSquashResolver(img)
    elif option == Option.ALL_LAYERS_SCOPE:
        return AllLayersResolver(img)
    raise ScopeError("bad option provided: {}".format(option))


def new_scope_from_dir(path, option=Option.SQUASHED_SCOPE):
    """
    Create a scope that catalogs the given filesystem directory recursively
    """
    return Scope(
        option=option,
        resolver=DirectoryResolver(path),
        dir_src=DirectorySource(path=path),
    )


def new_scope_from_image(img, option):
    """
    Create a scope that catalogs the given image from the perspective of the option (squashed or all-layers)
    """
    option = as_option(option)
    if img is None:
        raise ScopeError("no image given")

    try:
        resolver = get_image_resolver(img, option)
    except ScopeError as err:
        raise ScopeError("could not determine file resolver", cause=err) from err

    return Scope(option=option, resolver=resolver, img_src=ImageSource(img=img))


def new_scope(user_input, option, fs=os, image_detector=None, provider=None):
    """
    Produce a scope from user input like "dir:/path", "/path", "oci-dir:/path" or "repository:tag".

    :param user_input: free-form user string
    :param option: Option to view images with
    :param fs: filesystem probe with a stat() call, defaults to the os module
    :param image_detector: callable(str) -> (SourceType, location), defaults to detect_source probing through fs
    :param provider: ImageProvider that loads images, a new one is created per call when omitted
    :return: tuple of (Scope, cleanup callable)
    :raises ScopeError: the error's cleanup attribute must be invoked by the caller
    """
    option = as_option(option)

    try:
        parsed_scheme, location = detect_scheme(
            user_input, image_detector=image_detector, fs=fs
        )
    except SchemeDetectionError as err:
        raise ScopeError("unable to parse input", user_input, err) from err

    if parsed_scheme == Scheme.DIRECTORY_SCHEME:
        try:
            file_meta = fs.stat(location)
        except OSError as err:
            raise ScopeError(
                "unable to stat dir={!r}".format(location), user_input, err
            ) from err

        if not stat.S_ISDIR(file_meta.st_mode):
            raise ScopeError(
                "given path is not a directory (path={!r})".format(location), user_input
            )

        logger.debug("cataloging directory {}".format(location))
        return new_scope_from_dir(location, option=option), Cleanup()

    if parsed_scheme == Scheme.IMAGE_SCHEME:
        if provider is None:
            provider = ImageProvider()
        cleanup = Cleanup(provider.cleanup)

        try:
            img = provider.get_image(location)
        except Exception as err:
            raise ScopeError(
                "could not fetch image {!r}".format(location), user_input, err, cleanup
            ) from err

        if img is None:
            raise ScopeError(
                "could not fetch image {!r}".format(location), user_input, cleanup=cleanup
            )

        try:
            s = new_scope_from_image(img, option)
        except ScopeError as err:
            raise ScopeError(
                "could not populate scope with image", user_input, err, cleanup
            ) from err

        logger.debug("cataloging image {} ({})".format(location, option.value))
        return s, cleanup

    raise ScopeError("unable to process input for scanning", user_input)


@contextmanager
def get_scope(user_input, option=None, **kwargs):
    """
    Context manager around new_scope() that releases the scope's resources on every exit path, including a failed
    construction. The option may be an Option, its string value, or None for the configured default.
    """
    if option is None:
        localconfig = anchore_syft.configuration.localconfig.get_config()
        option = localconfig.get("scope", Option.SQUASHED_SCOPE.value)

    try:
        s, cleanup = new_scope(user_input, option, **kwargs)
    except ScopeError as err:
        err.cleanup()
        raise

    try:
        yield s
    finally:
        cleanup()
