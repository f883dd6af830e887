"""
Detection of where a container image should be loaded from, based on free-form user input.

"""
import enum
import os
import stat
import tarfile

import anchore_syft.configuration.localconfig
from anchore_syft.image.file import normalize_path
from anchore_syft.subsys import logger
from anchore_syft.util.docker import is_image_reference
from anchore_syft.utils import SyftException

OCI_LAYOUT_FILE = "oci-layout"
DOCKER_ARCHIVE_MANIFEST = "manifest.json"


class SourceType(enum.Enum):
    UNKNOWN = "unknown"
    DOCKER_DAEMON = "docker"
    REGISTRY = "registry"
    DOCKER_ARCHIVE = "docker-archive"
    OCI_DIRECTORY = "oci-dir"
    OCI_ARCHIVE = "oci-archive"


PATH_SOURCES = [
    SourceType.DOCKER_ARCHIVE,
    SourceType.OCI_DIRECTORY,
    SourceType.OCI_ARCHIVE,
]


class ImageDetectionError(SyftException):
    def __init__(self, cause, user_input, msg="unable to detect image source"):
        self.cause = str(cause)
        self.user_input = user_input
        self.msg = msg

    def __str__(self):
        return "{} ({}) - exception: {}".format(self.msg, self.user_input, self.cause)


def parse_source_scheme(scheme: str) -> SourceType:
    scheme = scheme.strip().lower()
    for source in SourceType:
        if source != SourceType.UNKNOWN and source.value == scheme:
            return source
    return SourceType.UNKNOWN


def canonical_location(source: SourceType, location: str) -> str:
    return "{}:{}".format(source.value, location)


def _archive_source(path):
    try:
        if not tarfile.is_tarfile(path):
            return SourceType.UNKNOWN
        with tarfile.open(path, mode="r") as tf:
            names = {normalize_path(name).lstrip("/") for name in tf.getnames()}
    except FileNotFoundError:
        # gone since it was stat'd
        return SourceType.UNKNOWN
    except (tarfile.TarError, OSError) as err:
        raise ImageDetectionError(err, path, msg="unable to read potential image archive")

    if DOCKER_ARCHIVE_MANIFEST in names:
        return SourceType.DOCKER_ARCHIVE
    if OCI_LAYOUT_FILE in names:
        return SourceType.OCI_ARCHIVE
    return SourceType.UNKNOWN


def detect_source_from_path(location, fs=os):
    """
    Determine if the given path is a docker archive, OCI archive or OCI layout directory

    :return: SourceType, UNKNOWN for paths that do not exist or are not images
    """
    try:
        file_meta = fs.stat(location)
    except OSError:
        return SourceType.UNKNOWN

    if stat.S_ISDIR(file_meta.st_mode):
        try:
            fs.stat(os.path.join(location, OCI_LAYOUT_FILE))
        except OSError:
            return SourceType.UNKNOWN
        return SourceType.OCI_DIRECTORY

    if stat.S_ISREG(file_meta.st_mode):
        return _archive_source(location)

    return SourceType.UNKNOWN


def _path_exists(location, fs):
    try:
        fs.stat(location)
    except OSError:
        return False
    return True


def detect_source(user_input: str, fs=os):
    """
    Interpret user input as an image source. An explicit scheme prefix (e.g. "oci-dir:") is trusted, otherwise the
    input is looked up on the filesystem and finally checked for being a valid image reference.

    :param user_input: free-form user string
    :param fs: filesystem probe with a stat() call, defaults to the os module
    :return: tuple of (SourceType, location)
    """
    candidates = user_input.split(":", 1)
    if len(candidates) == 2:
        source = parse_source_scheme(candidates[0])
        if source != SourceType.UNKNOWN:
            location = candidates[1]
            if source in PATH_SOURCES:
                location = os.path.expanduser(location)
            return source, location

    location = os.path.expanduser(user_input)
    source = detect_source_from_path(location, fs=fs)
    if source != SourceType.UNKNOWN:
        return source, location

    if _path_exists(location, fs):
        # something exists here but it is not an image, let the caller decide what it is
        return SourceType.UNKNOWN, ""

    if is_image_reference(user_input):
        localconfig = anchore_syft.configuration.localconfig.get_config()
        default_source = parse_source_scheme(
            str(localconfig.get("default_image_source", SourceType.REGISTRY.value))
        )
        if default_source not in (SourceType.REGISTRY, SourceType.DOCKER_DAEMON):
            default_source = SourceType.REGISTRY
        logger.debug(
            "treating input {} as an image reference (source={})".format(
                user_input, default_source.value
            )
        )
        return default_source, user_input

    return SourceType.UNKNOWN, ""
