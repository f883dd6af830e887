import copy
import os
import re

import yaml

from anchore_syft.subsys import logger

DEFAULT_CONFIG = {
    "tmp_dir": "/tmp",
    "log_level": "INFO",
    "json_logging": False,
    "scope": "squashed",
    "default_image_source": "registry",
    "skopeo_global_timeout": 0,
    "image_pull_retries": 3,
    "image_pull_retry_wait_ms": 1000,
    "registry_tls_verify": True,
    "keep_image_tmpfiles": False,
    "cataloger_workers": 1,
}

DEFAULT_CONFIG_DIR = os.path.join(
    "{}".format(os.getenv("HOME", "/tmp/syfttmp")), ".syft"
)
DEFAULT_CONFIG_FILENAME = "config.yaml"

# environment variables with this prefix may be substituted into the config file as ${NAME}
ENV_PREFIX = "SYFT"
ENV_FILE_VAR = "SYFT_ENV_FILE"

VALID_LOG_LEVELS = ["FATAL", "ERROR", "WARN", "WARNING", "INFO", "DEBUG", "SPEW"]

localconfig = {}


def update_merge(base, override):
    if not isinstance(base, dict) or not isinstance(override, dict):
        return

    for k, v in override.items():
        if k in base and type(base[k]) != type(v):
            base[k] = v
        else:
            if k in base and isinstance(base[k], dict):
                update_merge(base[k], v)
            else:
                base[k] = v
    return


def load_defaults(configdir=None):
    global localconfig

    if not configdir:
        configdir = DEFAULT_CONFIG_DIR

    localconfig.clear()
    localconfig.update(copy.deepcopy(DEFAULT_CONFIG))
    localconfig["config_dir"] = configdir

    return localconfig


def _read_env_overrides():
    syft_envs = {}
    env_file = os.environ.get(ENV_FILE_VAR)
    if env_file and os.path.exists(env_file):
        with open(env_file, "r") as FH:
            secret_envbuf = FH.read()
        for line in secret_envbuf.splitlines():
            try:
                (k, v) = line.split("=", 1)
            except ValueError:
                logger.warn("cannot parse line from {}: {}".format(ENV_FILE_VAR, line))
                continue
            v = re.sub("^(\"|')+", "", v)
            v = re.sub("(\"|')+$", "", v)
            if re.match("^{}.*".format(ENV_PREFIX), k):
                syft_envs[k] = str(v)

    for e in list(os.environ.keys()):
        if re.match("^{}.*".format(ENV_PREFIX), e):
            syft_envs[e] = str(os.environ[e])

    return syft_envs


def read_config(configfile=None):
    ret = {}

    if not configfile or not os.path.exists(configfile):
        raise Exception("no config file (" + str(configfile) + ") can be found to load")

    with open(configfile, "r") as FH:
        confbuf = FH.read()

    syft_envs = _read_env_overrides()
    for e in list(syft_envs.keys()):
        confbuf = confbuf.replace("${" + str(e) + "}", syft_envs[e])

    confdata = yaml.safe_load(confbuf)
    if confdata:
        ret.update(confdata)

    return ret


def validate_config(config):
    # imported here, the scope package reads this module at import time
    from anchore_syft.scope.option import Option, parse_option

    if str(config.get("log_level", "")).upper() not in VALID_LOG_LEVELS:
        raise Exception(
            "log_level must be one of {} (got {})".format(
                VALID_LOG_LEVELS, config.get("log_level")
            )
        )

    if parse_option(str(config.get("scope", ""))) == Option.UNKNOWN_SCOPE:
        raise Exception("unknown scope option: {}".format(config.get("scope")))

    if config.get("default_image_source") not in ("registry", "docker"):
        raise Exception(
            "default_image_source must be one of 'registry' or 'docker' (got {})".format(
                config.get("default_image_source")
            )
        )

    for key in ("skopeo_global_timeout", "image_pull_retries", "cataloger_workers"):
        try:
            value = int(config.get(key, 0))
        except (TypeError, ValueError):
            raise Exception("{} must be an integer".format(key))
        if value < 0:
            raise Exception("{} must not be negative".format(key))

    if int(config.get("image_pull_retries", 0)) < 1:
        raise Exception("image_pull_retries must be at least 1")

    return True


def load_config(configdir=None, configfile=None):
    global localconfig

    load_defaults(configdir=configdir)

    if not configfile:
        configfile = os.path.join(localconfig["config_dir"], DEFAULT_CONFIG_FILENAME)

    if not os.path.exists(configfile):
        logger.debug(
            "no config file found at {}, using defaults".format(configfile)
        )
    else:
        confdata = read_config(configfile=configfile)
        update_merge(localconfig, confdata)

    try:
        validate_config(localconfig)
    except Exception as err:
        raise Exception("invalid configuration: details - " + str(err))

    return localconfig


def get_config():
    global localconfig
    if not localconfig:
        load_defaults()
    return localconfig


def configure_logging_from_config(config=None):
    """
    Apply the log_level and json_logging settings of the given (or the loaded) configuration
    """
    if config is None:
        config = get_config()

    logger.configure_logging(
        config.get("log_level", DEFAULT_CONFIG["log_level"]),
        json_logging_enabled=bool(config.get("json_logging", False)),
    )
