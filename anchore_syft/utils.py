"""
Generic utilities
"""
import re
import subprocess
import time
from contextlib import contextmanager

from anchore_syft.subsys import logger

SANITIZE_CMD_ERROR_MESSAGE = "bad character in shell input"


class SyftException(Exception):
    def to_dict(self):
        return {
            self.__class__.__name__: dict(
                (key, value)
                for key, value in vars(self).items()
                if not key.startswith("_")
            )
        }


def run_sanitize(cmd_list):
    def shellcheck(x):
        if not re.search("[;&<>]", x):
            return x
        else:
            raise Exception(SANITIZE_CMD_ERROR_MESSAGE)

    return [x for x in cmd_list if shellcheck(x)]


def run_command_list(
    cmd_list, stdout=subprocess.PIPE, stderr=subprocess.PIPE, **kwargs
):
    """
    Run a command from a list with optional environment and return a tuple (rc, stdout_str, stderr_str)
    :param cmd_list: list of command e.g. ['ls', '/tmp']
    :param env: dict of env vars for the environment if desired. will replace normal env, not augment
    :return: tuple (rc_int, stdout_str, stderr_str)
    """

    cmd_list = run_sanitize(cmd_list)
    pipes = subprocess.Popen(cmd_list, **dict(stdout=stdout, stderr=stderr, **kwargs))
    stdout_result, stderr_result = pipes.communicate()

    return pipes.returncode, stdout_result, stderr_result


def ensure_str(obj):
    if obj is None:
        return ""
    return str(obj, "utf-8") if type(obj) != str else obj


@contextmanager
def timer(label, log_level="debug"):
    t = time.time()
    try:
        yield
    finally:
        log_level = log_level.lower()
        if log_level == "info":
            logger.info(
                "Execution of {} took: {} seconds".format(label, time.time() - t)
            )
        elif log_level == "warn":
            logger.warn(
                "Execution of {} took: {} seconds".format(label, time.time() - t)
            )
        elif log_level == "spew":
            logger.spew(
                "Execution of {} took: {} seconds".format(label, time.time() - t)
            )
        else:
            logger.debug(
                "Execution of {} took: {} seconds".format(label, time.time() - t)
            )
