"""
Classification of user input as a directory, an image or neither.

"""
import enum
import functools
import os
import stat

from anchore_syft.image.source import SourceType, canonical_location, detect_source
from anchore_syft.subsys import logger
from anchore_syft.utils import SyftException

DIRECTORY_PREFIX = "dir:"


class Scheme(enum.Enum):
    UNKNOWN_SCHEME = "unknown-scheme"
    DIRECTORY_SCHEME = "directory-scheme"
    IMAGE_SCHEME = "image-scheme"


class SchemeDetectionError(SyftException):
    def __init__(self, cause, user_input, msg="unable to detect the scheme"):
        self.cause = str(cause)
        self.user_input = user_input
        self.msg = msg

    def __repr__(self):
        return "{} from {!r} - exception: {}".format(self.msg, self.user_input, self.cause)

    def __str__(self):
        return self.__repr__()


def expand_home(path: str) -> str:
    expanded = os.path.expanduser(path)
    if expanded.startswith("~"):
        raise ValueError("unable to expand home directory in {}".format(path))
    return expanded


def detect_scheme(user_input: str, image_detector=None, fs=os):
    """
    Determine what kind of source the user input describes.

    :param user_input: free-form user string, optionally prefixed with "dir:"
    :param image_detector: callable(str) -> (SourceType, location), defaults to detect_source probing through fs
    :param fs: filesystem probe with a stat() call, defaults to the os module
    :return: tuple of (Scheme, location), location is "" for the unknown scheme
    """
    if image_detector is None:
        image_detector = functools.partial(detect_source, fs=fs)

    if user_input.startswith(DIRECTORY_PREFIX):
        # blindly trust the user's scheme, existence is checked when the scope is built
        try:
            return Scheme.DIRECTORY_SCHEME, expand_home(user_input[len(DIRECTORY_PREFIX) :])
        except ValueError as err:
            raise SchemeDetectionError(err, user_input, msg="unable to expand directory path") from err

    # an existing directory may still be an OCI layout (an image), so the image detector gets the first look
    try:
        source, location = image_detector(user_input)
    except Exception as err:
        raise SchemeDetectionError(err, user_input) from err

    if source != SourceType.UNKNOWN:
        return Scheme.IMAGE_SCHEME, canonical_location(source, location)

    try:
        dir_location = expand_home(user_input)
    except ValueError as err:
        raise SchemeDetectionError(err, user_input, msg="unable to expand potential directory path") from err

    try:
        file_meta = fs.stat(dir_location)
    except PermissionError as err:
        # indistinguishable from a missing path to the caller, so leave a trail
        logger.warn(
            "permission denied while checking {} as a directory: {}".format(dir_location, err)
        )
        return Scheme.UNKNOWN_SCHEME, ""
    except OSError as err:
        logger.debug("input {} is not a directory: {}".format(dir_location, err))
        return Scheme.UNKNOWN_SCHEME, ""

    if stat.S_ISDIR(file_meta.st_mode):
        return Scheme.DIRECTORY_SCHEME, dir_location
    return Scheme.UNKNOWN_SCHEME, ""
