# src/pipeline/context.py — v1
"""Immutable build context shared by every stage.

Holds the loaded settings together with everything derived from them once
per run: operation flags, Maven/Eclipse profiles and the composed Scala and
sbt version strings. Stages read it; nothing writes to it after creation.
"""

from __future__ import annotations

import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from uberbuild.config.settings import (
    ECLIPSE_PLATFORMS,
    ConfigurationError,
    Settings,
    bad_choice,
)

_SCALA_PROFILES: dict[str, tuple[str, str]] = {
    "2.10": ("scala-2.10.x", "210x"),
    "2.11": ("scala-2.11.x", "211x"),
}


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmm_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    return f"{ts.strftime('%Y%m%d_%H%M')}_{uuid.uuid4().hex[:5]}"


def short_version(version: str) -> str:
    """Major.minor part of a version: "2.10.2-abc-SNAPSHOT" -> "2.10"."""
    return ".".join(version.split(".")[:2])


@dataclass(frozen=True)
class BuildContext:
    settings: Settings
    run_id: str
    tmp_dir: Path
    release: bool
    dry_run: bool
    validator: bool
    sign_artifacts: bool
    scala_profile: str
    scala_repo_suffix: str
    eclipse_profile: str
    full_scala_version: str
    full_sbt_version: str
    enabled_plugins: tuple[str, ...] = ()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        tmp_dir: Path,
        run_id: str | None = None,
    ) -> BuildContext:
        """Derive flags and version strings from settings.

        Raises:
            ConfigurationError: If the Scala version or Eclipse platform is not supported.
        """
        operation = settings.operation
        release = operation in ("release", "release-dryrun")
        validator = operation == "scala-validator"

        profile = _SCALA_PROFILES.get(short_version(settings.scala_version))
        if profile is None:
            raise ConfigurationError(
                f"Not supported version of Scala: {settings.scala_version}."
            )
        if settings.eclipse_platform not in ECLIPSE_PLATFORMS:
            raise ConfigurationError(
                bad_choice("eclipse_platform", settings.eclipse_platform, ECLIPSE_PLATFORMS)
            )

        if validator:
            full_scala_version = f"{settings.scala_version}-{settings.scala_git_hash}-SNAPSHOT"
        else:
            full_scala_version = settings.scala_version

        return cls(
            settings=settings,
            run_id=run_id or generate_run_id(),
            tmp_dir=Path(tmp_dir),
            release=release,
            dry_run=operation == "release-dryrun",
            validator=validator,
            sign_artifacts=release,
            scala_profile=profile[0],
            scala_repo_suffix=profile[1],
            eclipse_profile=f"eclipse-{settings.eclipse_platform}",
            full_scala_version=full_scala_version,
            full_sbt_version=(
                f"{settings.sbt_version}-on-{full_scala_version}-for-IDE-SNAPSHOT"
            ),
            enabled_plugins=tuple(settings.plugins_list),
        )

    # --- Derived values ---

    @property
    def operation(self) -> str:
        return self.settings.operation

    @property
    def short_scala_version(self) -> str:
        return short_version(self.full_scala_version)

    @property
    def scala_version_suffix(self) -> str:
        """Suffix appended to locally built Scala snapshots ("" for releases)."""
        if not self.validator:
            return ""
        return f"-{self.settings.scala_git_hash}-SNAPSHOT"

    @property
    def ide_m2_repo(self) -> str:
        return f"{self.settings.ide_m2_repo_base}{self.short_scala_version}"

    @property
    def build_dir(self) -> Path:
        return Path(self.settings.build_dir).expanduser()

    @property
    def cache_root(self) -> Path:
        return Path(self.settings.p2_cache_dir).expanduser()

    @property
    def local_m2_repo(self) -> Path:
        return Path(self.settings.local_m2_repo).expanduser()

    @property
    def maven_extra_opts(self) -> list[str]:
        return self.settings.maven_extra_opts.split()

    @property
    def timeout_s(self) -> float | None:
        return float(self.settings.command_timeout_s) or None

    @property
    def report_path(self) -> Path:
        return self.build_dir / "uber-build-report.json"

    def path_setting(self, name: str) -> Path:
        """A directory-valued setting as an expanded Path."""
        return Path(str(getattr(self.settings, name))).expanduser()

    def stage_tmp(self, name: str) -> Path:
        """Fresh scratch directory for one stage inside the run's temp dir."""
        path = self.tmp_dir / name
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
        return path
