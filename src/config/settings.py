# src/config/settings.py — v3
"""Typed build configuration loaded from flat KEY=value files via pydantic-settings.

The packaged ``default.conf`` is read first, then the run-specific file; a key
in a later file replaces the earlier value entirely. Process environment
variables are not read: the files alone describe a run. The resulting object is
frozen and validated once: every missing or malformed key for the selected
operation is reported before any fetch or build starts.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from uberbuild.config.plugins import PLUGIN_REGISTRY

DEFAULT_CONFIG_FILE = Path(__file__).with_name("default.conf")

OPERATIONS: tuple[str, ...] = ("release", "release-dryrun", "scala-validator")
ECLIPSE_PLATFORMS: tuple[str, ...] = ("indigo", "juno")
BUILD_TYPES: tuple[str, ...] = ("dev", "stable")
SUPPORTED_SCALA_VERSION = re.compile(r"^2\.1[01]\.")

_ALWAYS_REQUIRED: tuple[str, ...] = (
    "build_dir",
    "local_m2_repo",
    "p2_cache_dir",
    "scala_ide_dir",
    "scala_ide_git_repo",
    "scala_ide_git_branch",
    "eclipse_platform",
    "version_tag",
    "scala_refactoring_dir",
    "scala_refactoring_git_repo",
    "scala_refactoring_git_branch",
    "scalariform_dir",
    "scalariform_git_repo",
    "scalariform_git_branch",
    "sbt_version",
)
_RELEASE_REQUIRED: tuple[str, ...] = ("scala_version", "keystore_dir", "keystore_pass")
_VALIDATOR_REQUIRED: tuple[str, ...] = (
    "scala_git_repo",
    "scala_version",
    "scala_git_hash",
    "scala_dir",
    "zinc_build_dir",
    "zinc_build_git_repo",
    "zinc_build_git_branch",
)
_PRODUCT_REQUIRED: tuple[str, ...] = ("product_dir", "product_git_repo", "product_git_branch")
_PUBLISH_REQUIRED: tuple[str, ...] = ("publish_host", "publish_root")


class ConfigurationError(Exception):
    """Raised when a required key is missing or an enumerated key has a bad value."""


def missing_parameter(name: str) -> str:
    return f"Bad value for {name.upper()}. It should be defined."


def bad_choice(name: str, value: object, choices: tuple[str, ...]) -> str:
    return (
        f"Bad value for {name.upper()}. Was '{value}', "
        f"should be one of: {', '.join(choices)}."
    )


class Settings(BaseSettings):
    """Build parameters: versions, repositories, directories, credentials, toggles."""

    model_config = SettingsConfigDict(
        env_file=DEFAULT_CONFIG_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Config files only: the process environment never overrides them."""
        return (init_settings, dotenv_settings)

    # === Operation ===
    operation: str = ""
    debug: bool = False

    # === Directories ===
    build_dir: str = ""
    local_m2_repo: str = ""
    p2_cache_dir: str = ""

    # === Scala ===
    scala_version: str = ""
    scala_git_repo: str = ""
    scala_git_hash: str = ""
    scala_dir: str = ""
    scala_webapps_url: str = "http://scala-webapps.epfl.ch/artifacts"

    # === Zinc / sbt ===
    sbt_version: str = ""
    zinc_build_dir: str = ""
    zinc_build_git_repo: str = ""
    zinc_build_git_branch: str = ""
    ide_m2_repo_base: str = "http://typesafe.artifactoryonline.com/typesafe/ide-"

    # === Scala IDE ===
    scala_ide_dir: str = ""
    scala_ide_git_repo: str = ""
    scala_ide_git_branch: str = ""
    eclipse_platform: str = ""
    version_tag: str = ""

    # === Auxiliary libraries ===
    scala_refactoring_dir: str = ""
    scala_refactoring_git_repo: str = ""
    scala_refactoring_git_branch: str = ""
    scalariform_dir: str = ""
    scalariform_git_repo: str = ""
    scalariform_git_branch: str = ""

    # === Optional plugins ===
    plugins: str = ""
    worksheet_dir: str = ""
    worksheet_git_repo: str = ""
    worksheet_git_branch: str = ""
    play_dir: str = ""
    play_git_repo: str = ""
    play_git_branch: str = ""
    search_dir: str = ""
    search_git_repo: str = ""
    search_git_branch: str = ""
    scalatest_dir: str = ""
    scalatest_git_repo: str = ""
    scalatest_git_branch: str = ""

    # === Product ===
    product: bool = False
    product_dir: str = ""
    product_git_repo: str = ""
    product_git_branch: str = ""

    # === Publish ===
    publish: bool = False
    publish_host: str = ""
    publish_root: str = ""
    build_type: str = "dev"

    # === Signing ===
    keystore_dir: str = ""
    keystore_pass: str = ""
    keystore_git_repo: str = ""
    keystore_alias: str = "typesafe"

    # === Cache ===
    cache_force_rebuild: bool = False

    # === External tools ===
    required_java_version: str = "1.6"
    ant_opts: str = "-Xms512M -Xmx2048M -Xss1M -XX:MaxPermSize=128M"
    maven_extra_opts: str = ""
    command_timeout_s: int = 0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: str = ""
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("command_timeout_s", "log_retention")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_required_parameters(self) -> Settings:
        """Check that every key the selected operation relies on is present and valid."""
        if self.operation not in OPERATIONS:
            raise ConfigurationError(bad_choice("operation", self.operation, OPERATIONS))

        errors: list[str] = []

        required = list(_ALWAYS_REQUIRED)
        if self.is_release:
            required.extend(_RELEASE_REQUIRED)
        if self.operation == "scala-validator":
            required.extend(_VALIDATOR_REQUIRED)

        unknown = [p for p in self.plugins_list if p not in PLUGIN_REGISTRY]
        for name in unknown:
            errors.append(bad_choice("plugins", name, tuple(PLUGIN_REGISTRY)))
        for name in self.plugins_list:
            if name in PLUGIN_REGISTRY:
                required.extend(PLUGIN_REGISTRY[name].required_settings)

        if self.product:
            required.extend(_PRODUCT_REQUIRED)
        if self.publish:
            required.extend(_PUBLISH_REQUIRED)

        seen: set[str] = set()
        for name in required:
            if name in seen:
                continue
            seen.add(name)
            if not str(getattr(self, name)).strip():
                errors.append(missing_parameter(name))

        if self.eclipse_platform and self.eclipse_platform not in ECLIPSE_PLATFORMS:
            errors.append(
                bad_choice("eclipse_platform", self.eclipse_platform, ECLIPSE_PLATFORMS)
            )
        if self.scala_version and not SUPPORTED_SCALA_VERSION.match(self.scala_version):
            errors.append(f"Not supported version of Scala: {self.scala_version}.")
        if self.build_type not in BUILD_TYPES:
            errors.append(bad_choice("build_type", self.build_type, BUILD_TYPES))
        if self.publish and not self.is_release:
            errors.append("PUBLISH is only supported for release operations.")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def is_release(self) -> bool:
        return self.operation in ("release", "release-dryrun")

    @property
    def plugins_list(self) -> list[str]:
        """Parse comma-separated plugin names, keeping the order of the registry."""
        requested = {p.strip() for p in self.plugins.split(",") if p.strip()}
        known = [name for name in PLUGIN_REGISTRY if name in requested]
        return known + sorted(requested - set(known))


def load_settings(
    config_file: Path | str | None = None,
    default_file: Path | str | None = DEFAULT_CONFIG_FILE,
    **overrides: object,
) -> Settings:
    """Load settings from the default file, then the run-specific file.

    Args:
        config_file: Run-specific KEY=value file. Its keys win over the defaults.
        default_file: Base KEY=value file (None = no defaults file).
        **overrides: Field-level overrides (for testing).

    Returns:
        Validated, frozen Settings instance.

    Raises:
        ConfigurationError: If a required key is missing or a value is not allowed.
    """
    files = tuple(str(f) for f in (default_file, config_file) if f is not None)
    return Settings(_env_file=files or None, **overrides)  # type: ignore[arg-type]
