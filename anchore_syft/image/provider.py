"""
Image provider: fetches an image into a staging area, reads it, and owns the on-disk state until cleanup.

"""
import os
import shutil
import tarfile
import threading
import uuid

import anchore_syft.configuration.localconfig
from anchore_syft.clients.skopeo_wrapper import retrying_copy_image
from anchore_syft.image.image import Image
from anchore_syft.image.source import SourceType, detect_source
from anchore_syft.subsys import logger
from anchore_syft.utils import SyftException, timer

_providers_lock = threading.Lock()
_providers = set()


class ImageLoadError(SyftException):
    def __init__(self, cause, image_spec, msg="could not load image"):
        self.cause = str(cause)
        self.image_spec = str(image_spec)
        self.msg = msg

    def __repr__(self):
        return "{} ({}) - exception: {}".format(self.msg, self.image_spec, self.cause)

    def __str__(self):
        return "{} ({}) - exception: {}".format(self.msg, self.image_spec, self.cause)

    def to_dict(self):
        return {
            self.__class__.__name__: dict(
                (
                    key,
                    "{}...(truncated)".format(value[:256])
                    if key == "cause" and isinstance(value, str) and len(value) > 256
                    else value,
                )
                for key, value in vars(self).items()
                if not key.startswith("_")
            )
        }


def _rmtree_error_handler(infunc, inpath, inerr):
    try:
        # attempt to change the permissions and then retry removal
        os.chmod(inpath, 0o777)
    except OSError:
        logger.warn(
            "unable to change permissions in error handler for path {} in shutil.rmtree".format(
                inpath
            )
        )
    finally:
        try:
            infunc(inpath)
        except OSError as err:
            logger.debug(
                "unable to remove in error handler for path {} - this will be retried".format(
                    err
                )
            )


def rmtree_force(inpath):
    if os.path.exists(inpath):
        try:
            shutil.rmtree(inpath, False, _rmtree_error_handler)
        finally:
            if os.path.exists(inpath):
                shutil.rmtree(inpath)

    return True


def _safe_members(tf, dest_dir):
    dest_dir = os.path.realpath(dest_dir)
    for member in tf.getmembers():
        if not (member.isreg() or member.isdir()):
            logger.debug("skipping non-regular archive member {}".format(member.name))
            continue
        target = os.path.realpath(os.path.join(dest_dir, member.name))
        if os.path.commonpath([dest_dir, target]) != dest_dir:
            raise Exception("archive member {} escapes the destination".format(member.name))
        yield member


def extract_oci_archive(archive_path, dest_dir):
    with tarfile.open(archive_path, mode="r") as tf:
        members = list(_safe_members(tf, dest_dir))
        if hasattr(tarfile, "data_filter"):
            tf.extractall(dest_dir, members=members, filter="data")
        else:
            tf.extractall(dest_dir, members=members)
    return dest_dir


class ImageProvider:
    """
    Loads images and tracks every staging directory created while doing so. Each provider owns its own state, the
    cleanup() of one provider never touches another's.
    """

    def __init__(self, tmp_dir=None, registry_user=None, registry_pw=None):
        localconfig = anchore_syft.configuration.localconfig.get_config()
        self.tmp_dir = tmp_dir or localconfig.get("tmp_dir", "/tmp")
        self.registry_user = registry_user
        self.registry_pw = registry_pw
        self._staging_dirs = []
        self._lock = threading.Lock()

        with _providers_lock:
            _providers.add(self)

    def make_staging_dir(self):
        if not os.path.exists(self.tmp_dir):
            raise Exception(
                "passed in root directory must exist (" + str(self.tmp_dir) + ")"
            )

        staging_dir = os.path.join(self.tmp_dir, "syft-{}".format(uuid.uuid4()))
        logger.debug("making staging dir: {}".format(staging_dir))
        os.makedirs(staging_dir)
        with self._lock:
            self._staging_dirs.append(staging_dir)
        return staging_dir

    @property
    def staging_dirs(self):
        with self._lock:
            return list(self._staging_dirs)

    def fetch(self, source, location):
        """
        Make the image available as an OCI layout directory and return its path
        """
        if source == SourceType.OCI_DIRECTORY:
            return location

        staging_dir = self.make_staging_dir()

        if source == SourceType.OCI_ARCHIVE:
            return extract_oci_archive(location, os.path.join(staging_dir, "raw"))

        localconfig = anchore_syft.configuration.localconfig.get_config()
        copydir = os.path.join(staging_dir, "raw")
        logger.info("Copying image {} to {}".format(location, copydir))
        retrying_copy_image(
            source.value,
            location,
            copydir,
            verify=localconfig.get("registry_tls_verify", True),
            user=self.registry_user,
            pw=self.registry_pw,
        )
        return copydir

    def get_image(self, image_spec) -> Image:
        """
        Fetch and read the image named by the given input (see source.detect_source for accepted forms)

        :raises ImageLoadError: on any failure, staging state may still exist and is released by cleanup()
        """
        source, location = detect_source(image_spec)
        if source == SourceType.UNKNOWN:
            raise ImageLoadError(
                "no image source matches the input",
                image_spec,
                msg="unable to determine image source",
            )

        try:
            with timer("image load of {}".format(image_spec), log_level="info"):
                oci_dir = self.fetch(source, location)
                img = Image(oci_dir, reference=location, source=source)
                img.read()
        except Exception as err:
            raise ImageLoadError(err, image_spec, msg="could not fetch image") from err

        return img

    def cleanup(self):
        """
        Remove every staging directory this provider created. Safe to call more than once.
        """
        with self._lock:
            staging_dirs = self._staging_dirs
            self._staging_dirs = []

        with _providers_lock:
            _providers.discard(self)

        localconfig = anchore_syft.configuration.localconfig.get_config()
        if localconfig.get("keep_image_tmpfiles", False):
            logger.debug(
                "keep_image_tmpfiles is enabled - leaving image tmpdirs in place {}".format(
                    staging_dirs
                )
            )
            return

        for staging_dir in staging_dirs:
            logger.debug("removing staging dir: {}".format(staging_dir))
            rmtree_force(staging_dir)


def cleanup():
    """
    Process-wide release of every provider that has not been cleaned up yet
    """
    with _providers_lock:
        providers = list(_providers)

    for provider in providers:
        provider.cleanup()
