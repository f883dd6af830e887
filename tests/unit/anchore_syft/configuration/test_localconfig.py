import pytest

from anchore_syft.configuration.localconfig import (
    DEFAULT_CONFIG,
    configure_logging_from_config,
    get_config,
    load_config,
    load_defaults,
    read_config,
    update_merge,
    validate_config,
)


def write_config(tmpdir, content, filename="config.yaml"):
    config_fn = tmpdir.join(filename)
    config_fn.write(content)
    return config_fn.strpath


def test_load_defaults_is_a_copy(tmpdir):
    config = load_defaults(configdir=tmpdir.strpath)
    config["scope"] = "all-layers"

    assert DEFAULT_CONFIG["scope"] == "squashed"
    assert config["config_dir"] == tmpdir.strpath


def test_get_config_loads_defaults_when_empty():
    load_defaults().clear()
    assert get_config()["default_image_source"] == "registry"


def test_missing_config_file_uses_defaults(tmpdir):
    config = load_config(configdir=tmpdir.strpath)
    for key, value in DEFAULT_CONFIG.items():
        assert config[key] == value


def test_load_config_merges_file(tmpdir):
    configfile = write_config(
        tmpdir, "scope: all-layers\nlog_level: DEBUG\nimage_pull_retries: 5\n"
    )
    config = load_config(configdir=tmpdir.strpath, configfile=configfile)

    assert config["scope"] == "all-layers"
    assert config["log_level"] == "DEBUG"
    assert config["image_pull_retries"] == 5
    assert config["tmp_dir"] == DEFAULT_CONFIG["tmp_dir"]
    assert get_config() is config


def test_read_config_env_substitution(tmpdir, monkeypatch):
    monkeypatch.setenv("SYFT_TMP_DIR", "/var/tmp/syft")
    configfile = write_config(tmpdir, "tmp_dir: ${SYFT_TMP_DIR}\n")

    assert read_config(configfile)["tmp_dir"] == "/var/tmp/syft"


def test_read_config_env_file_substitution(tmpdir, monkeypatch):
    env_file = write_config(tmpdir, "SYFT_SCOPE='all-layers'\nnot a pair\n", "env")
    monkeypatch.setenv("SYFT_ENV_FILE", env_file)
    configfile = write_config(tmpdir, "scope: ${SYFT_SCOPE}\n")

    assert read_config(configfile)["scope"] == "all-layers"


def test_read_config_missing_file(tmpdir):
    with pytest.raises(Exception) as error:
        read_config(tmpdir.join("nope.yaml").strpath)
    assert "can be found to load" in str(error.value)


@pytest.mark.parametrize(
    "override, expected_message",
    [
        ({"log_level": "LOUD"}, "log_level"),
        ({"scope": "sideways"}, "unknown scope option"),
        ({"default_image_source": "oci-dir"}, "default_image_source"),
        ({"skopeo_global_timeout": -1}, "must not be negative"),
        ({"image_pull_retries": 0}, "at least 1"),
        ({"cataloger_workers": "many"}, "must be an integer"),
    ],
)
def test_validate_config_rejects(override, expected_message):
    config = load_defaults()
    config.update(override)

    with pytest.raises(Exception) as error:
        validate_config(config)
    assert expected_message in str(error.value)


def test_load_config_invalid(tmpdir):
    configfile = write_config(tmpdir, "scope: sideways\n")
    with pytest.raises(Exception) as error:
        load_config(configdir=tmpdir.strpath, configfile=configfile)
    assert str(error.value).startswith("invalid configuration: details - ")


def test_update_merge_nested():
    base = {"a": {"b": 1, "c": 2}, "d": "x"}
    update_merge(base, {"a": {"b": 3}, "d": 4})

    assert base == {"a": {"b": 3, "c": 2}, "d": 4}


def test_configure_logging_from_config(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "anchore_syft.configuration.localconfig.logger.configure_logging",
        lambda level, json_logging_enabled=False: calls.append(
            (level, json_logging_enabled)
        ),
    )
    config = load_defaults()
    config["log_level"] = "DEBUG"
    config["json_logging"] = True

    configure_logging_from_config()
    assert calls == [("DEBUG", True)]
