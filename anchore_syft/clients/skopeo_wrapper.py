import os
import shlex

import retrying

import anchore_syft.configuration.localconfig
from anchore_syft.common.errors import SyftError
from anchore_syft.subsys import logger
from anchore_syft.utils import SyftException, ensure_str, run_command_list

# skopeo transport names keyed by the image source scheme
SOURCE_TRANSPORTS = {
    "registry": "docker://",
    "docker": "docker-daemon:",
    "docker-archive": "docker-archive:",
    "oci-archive": "oci-archive:",
}


class SkopeoError(SyftException):
    def __init__(
        self,
        cmd=None,
        rc=None,
        err=None,
        out=None,
        msg="Error encountered in skopeo operation",
    ):
        self.cmd = " ".join(cmd) if isinstance(cmd, list) else cmd
        self.exitcode = rc
        self.stderr = (
            ensure_str(err).replace("\r", " ").replace("\n", " ").strip()
            if err
            else None
        )
        self.stdout = (
            ensure_str(out).replace("\r", " ").replace("\n", " ").strip()
            if out
            else None
        )
        self.msg = msg
        self.error_code = self._error_code_from_stderr(self.stderr)

    @staticmethod
    def _error_code_from_stderr(stderr):
        if not stderr:
            return SyftError.UNKNOWN.name
        if "unauthorized" in stderr:
            return SyftError.REGISTRY_PERMISSION_DENIED.name
        elif "manifest unknown" in stderr:
            return SyftError.REGISTRY_IMAGE_NOT_FOUND.name
        elif "connection refused" in stderr or "no route to host" in stderr:
            return SyftError.REGISTRY_NOT_ACCESSIBLE.name
        elif "error pinging registry" in stderr:
            return SyftError.REGISTRY_NOT_SUPPORTED.name
        elif "Cannot connect to the Docker daemon" in stderr:
            return SyftError.DOCKER_DAEMON_NOT_ACCESSIBLE.name
        elif "no image found in manifest list for architecture" in stderr:
            return SyftError.OSARCH_MISMATCH.name
        return SyftError.SKOPEO_UNKNOWN_ERROR.name

    def __repr__(self):
        return "{}. cmd={}, rc={}, stdout={}, stderr={}, error_code={}".format(
            self.msg, self.cmd, self.exitcode, self.stdout, self.stderr, self.error_code
        )

    def __str__(self):
        return self.__repr__()


def _global_timeout_str():
    localconfig = anchore_syft.configuration.localconfig.get_config()
    try:
        global_timeout = int(localconfig.get("skopeo_global_timeout", 0))
    except (TypeError, ValueError):
        global_timeout = 0

    if global_timeout > 0:
        return "--command-timeout {}s".format(global_timeout)
    return ""


def build_copy_command(source_scheme, location, dest_dir, verify=True, use_creds=False):
    """
    Build the skopeo command that copies the given image into an OCI layout directory.

    Credentials are never placed on the command line, when use_creds is set the command
    is run through a shell that expands them from the SKOPUSER/SKOPPASS environment variables.

    :param source_scheme: one of the keys of SOURCE_TRANSPORTS
    :param location: the image reference or archive path
    :param dest_dir: directory to write the OCI layout into
    :param verify: verify registry TLS certificates
    :param use_creds: pass registry credentials from the environment
    :return: list of command arguments
    """
    try:
        transport = SOURCE_TRANSPORTS[source_scheme]
    except KeyError:
        raise ValueError(
            "skopeo cannot copy images from source scheme {}".format(source_scheme)
        )

    if source_scheme == "registry":
        tlsverifystr = "--src-tls-verify={}".format("true" if verify else "false")
    else:
        tlsverifystr = ""

    if source_scheme == "registry" and use_creds:
        credstr = '--src-creds "${SKOPUSER}":"${SKOPPASS}"'
    else:
        credstr = ""

    cmdstr = "skopeo {} copy --remove-signatures {} {} {} {}".format(
        _global_timeout_str(),
        tlsverifystr,
        credstr,
        shlex.quote("{}{}".format(transport, location)),
        shlex.quote("oci:{}:image".format(dest_dir)),
    )

    if credstr:
        return ["/bin/sh", "-c", " ".join(cmdstr.split())]
    return shlex.split(cmdstr)


def copy_image(source_scheme, location, dest_dir, verify=True, user=None, pw=None):
    """
    Copy an image from the given source into an OCI layout directory at dest_dir

    :return: True on success, raises SkopeoError otherwise
    """
    proc_env = os.environ.copy()
    use_creds = bool(user and pw)
    if use_creds:
        proc_env["SKOPUSER"] = user
        proc_env["SKOPPASS"] = pw

    cmd = build_copy_command(
        source_scheme, location, dest_dir, verify=verify, use_creds=use_creds
    )
    cmdstr = " ".join(cmd)

    try:
        rc, sout, serr = run_command_list(cmd, env=proc_env)
    except FileNotFoundError as err:
        raise SkopeoError(
            cmd=cmdstr, rc=1, err=str(err), msg="skopeo executable not found in path"
        )

    if rc != 0:
        raise SkopeoError(cmd=cmdstr, rc=rc, out=sout, err=serr)

    logger.debug(
        "command succeeded: cmd={} stdout={} stderr={}".format(
            cmdstr, ensure_str(sout).strip(), ensure_str(serr).strip()
        )
    )
    return True


def _retry_on_skopeo_error(err):
    # a missing image or bad credentials will not fix themselves on retry
    if isinstance(err, SkopeoError):
        return err.error_code not in (
            SyftError.REGISTRY_PERMISSION_DENIED.name,
            SyftError.REGISTRY_IMAGE_NOT_FOUND.name,
        )
    return False


def retrying_copy_image(source_scheme, location, dest_dir, verify=True, user=None, pw=None):
    """
    Retry-wrapper on copy_image, attempts and wait are read from the configuration
    """
    localconfig = anchore_syft.configuration.localconfig.get_config()
    attempts = int(localconfig.get("image_pull_retries", 3))
    wait_ms = int(localconfig.get("image_pull_retry_wait_ms", 1000))

    @retrying.retry(
        stop_max_attempt_number=attempts,
        wait_incrementing_start=wait_ms,
        wait_incrementing_increment=wait_ms,
        retry_on_exception=_retry_on_skopeo_error,
    )
    def _copy():
        try:
            return copy_image(
                source_scheme, location, dest_dir, verify=verify, user=user, pw=pw
            )
        except Exception as err:
            logger.debug_exception(
                "Could not copy image due to error: {}. Will retry".format(str(err))
            )
            raise

    return _copy()
