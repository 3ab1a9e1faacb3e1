# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from uberbuild.config.settings import (
    DEFAULT_CONFIG_FILE,
    ConfigurationError,
    Settings,
    load_settings,
)

_RELEASE_CONF = """\
OPERATION=release
BUILD_DIR={root}/build
LOCAL_M2_REPO={root}/m2
P2_CACHE_DIR={root}/p2
SCALA_VERSION=2.10.2
SCALA_IDE_DIR={root}/scala-ide
SCALA_IDE_GIT_BRANCH=release/3.0.x
VERSION_TAG=v
SCALA_REFACTORING_DIR={root}/ref
SCALA_REFACTORING_GIT_BRANCH=0.6.1
SCALARIFORM_DIR={root}/sf
SCALARIFORM_GIT_BRANCH=master
KEYSTORE_DIR={root}/keystore
KEYSTORE_PASS=pw
"""


def _write_conf(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "build.conf"
    path.write_text(text.format(root=tmp_path))
    return path


class TestSettingsDefaults:
    def test_defaults_without_files(self, make_settings):
        s = make_settings()
        assert s.build_type == "dev"
        assert s.keystore_alias == "typesafe"
        assert s.required_java_version == ""
        assert s.cache_force_rebuild is False
        assert s.log_level == "INFO"

    def test_frozen(self, release_settings):
        with pytest.raises(ValidationError):
            release_settings.version_tag = "other"  # type: ignore[misc]

    def test_default_conf_shipped(self):
        assert DEFAULT_CONFIG_FILE.is_file()


class TestLoadSettings:
    def test_defaults_then_user_file(self, tmp_path):
        s = load_settings(_write_conf(tmp_path, _RELEASE_CONF))
        assert s.operation == "release"
        # from default.conf
        assert s.scala_ide_git_repo == "git://github.com/scala-ide/scala-ide.git"
        assert s.eclipse_platform == "indigo"
        assert s.sbt_version == "0.13.0"
        # from the user file
        assert s.scala_ide_git_branch == "release/3.0.x"

    def test_user_file_wins(self, tmp_path):
        conf = _RELEASE_CONF + "ECLIPSE_PLATFORM=juno\nSBT_VERSION=0.13.1\n"
        s = load_settings(_write_conf(tmp_path, conf))
        assert s.eclipse_platform == "juno"
        assert s.sbt_version == "0.13.1"

    def test_overrides(self, tmp_path):
        s = load_settings(_write_conf(tmp_path, _RELEASE_CONF), version_tag="v2")
        assert s.version_tag == "v2"

    def test_without_default_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="SCALA_IDE_GIT_REPO"):
            load_settings(_write_conf(tmp_path, _RELEASE_CONF), default_file=None)


class TestEnvironmentIgnored:
    def test_file_value_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("P2_CACHE_DIR", "/somewhere/else")
        monkeypatch.setenv("OPERATION", "scala-validator")
        s = load_settings(_write_conf(tmp_path, _RELEASE_CONF))
        assert s.p2_cache_dir == f"{tmp_path}/p2"
        assert s.operation == "release"

    def test_environment_does_not_fill_unset_keys(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PUBLISH", "true")
        monkeypatch.setenv("ECLIPSE_PLATFORM", "juno")
        s = load_settings(_write_conf(tmp_path, _RELEASE_CONF))
        assert s.publish is False
        assert s.eclipse_platform == "indigo"

    def test_unrelated_debug_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEBUG", "*")
        s = load_settings(_write_conf(tmp_path, _RELEASE_CONF))
        assert s.debug is False

    def test_missing_key_not_supplied_by_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VERSION_TAG", "from-env")
        conf = _RELEASE_CONF.replace("VERSION_TAG=v\n", "")
        with pytest.raises(ConfigurationError, match="VERSION_TAG"):
            load_settings(_write_conf(tmp_path, conf))


class TestOperation:
    def test_missing_operation(self, make_settings):
        with pytest.raises(ConfigurationError, match="Bad value for OPERATION"):
            make_settings(operation="")

    def test_unknown_operation(self, make_settings):
        with pytest.raises(ConfigurationError, match="Was 'deploy'"):
            make_settings(operation="deploy")

    def test_release_flags(self, make_settings):
        assert make_settings(operation="release").is_release
        assert make_settings(operation="release-dryrun").is_release


class TestRequiredParameters:
    def test_missing_key_named(self, make_settings):
        with pytest.raises(ConfigurationError, match="Bad value for VERSION_TAG. It should be defined."):
            make_settings(version_tag="")

    def test_all_missing_keys_reported(self, make_settings):
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(version_tag="", p2_cache_dir="")
        message = str(exc_info.value)
        assert "VERSION_TAG" in message
        assert "P2_CACHE_DIR" in message
        assert "\n" not in message

    def test_release_needs_keystore(self, make_settings):
        with pytest.raises(ConfigurationError, match="KEYSTORE_PASS"):
            make_settings(keystore_pass="")

    def test_validator_needs_scala_sources(self, make_settings):
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(operation="scala-validator", keystore_dir="", keystore_pass="")
        message = str(exc_info.value)
        for key in ("SCALA_GIT_REPO", "SCALA_GIT_HASH", "SCALA_DIR", "ZINC_BUILD_DIR"):
            assert key in message
        assert "KEYSTORE" not in message

    def test_plugin_keys_required(self, make_settings):
        with pytest.raises(ConfigurationError, match="WORKSHEET_DIR"):
            make_settings(plugins="worksheet")

    def test_product_keys_required(self, make_settings):
        with pytest.raises(ConfigurationError, match="PRODUCT_GIT_REPO"):
            make_settings(product=True, product_dir="/p", product_git_branch="master")

    def test_publish_keys_required(self, make_settings):
        with pytest.raises(ConfigurationError, match="PUBLISH_HOST"):
            make_settings(publish=True, publish_root="/srv")


class TestEnumeratedValues:
    def test_bad_eclipse_platform(self, make_settings):
        with pytest.raises(ConfigurationError, match="ECLIPSE_PLATFORM"):
            make_settings(eclipse_platform="kepler")

    def test_unsupported_scala(self, make_settings):
        with pytest.raises(ConfigurationError, match="Not supported version of Scala: 2.9.3"):
            make_settings(scala_version="2.9.3")

    def test_scala_211_supported(self, make_settings):
        assert make_settings(scala_version="2.11.0-M4").scala_version == "2.11.0-M4"

    def test_unknown_plugin(self, make_settings):
        with pytest.raises(ConfigurationError, match="Was 'emacs'"):
            make_settings(plugins="emacs")

    def test_bad_build_type(self, make_settings):
        with pytest.raises(ConfigurationError, match="BUILD_TYPE"):
            make_settings(build_type="nightly")

    def test_publish_only_for_release(self, make_settings):
        with pytest.raises(ConfigurationError, match="PUBLISH is only supported"):
            make_settings(
                operation="scala-validator",
                publish=True,
                publish_host="h",
                publish_root="/r",
                scala_git_repo="r",
                scala_git_hash="abc",
                scala_dir="/s",
                zinc_build_dir="/z",
                zinc_build_git_repo="r",
                zinc_build_git_branch="master",
            )

    def test_negative_timeout(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(command_timeout_s=-1)


class TestPluginsList:
    def test_registry_order(self, make_settings):
        s = make_settings(
            plugins=" play , worksheet",
            worksheet_dir="/w", worksheet_git_repo="r", worksheet_git_branch="b",
            play_dir="/p", play_git_repo="r", play_git_branch="b",
        )
        assert s.plugins_list == ["worksheet", "play"]

    def test_empty(self, release_settings):
        assert release_settings.plugins_list == []
