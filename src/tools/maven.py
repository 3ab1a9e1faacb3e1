# src/tools/maven.py — v1
"""Maven invocation: artifact availability checks, builds, and OSGi versions from jars."""

from __future__ import annotations

import logging
import shutil
import zipfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from uberbuild.tools.process import define_flags, run_command

logger = logging.getLogger(__name__)

_DUMMY_POM_HEAD = """\
<project xmlns="http://maven.apache.org/POM/4.0.0" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 http://maven.apache.org/maven-v4_0_0.xsd">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.typesafe</groupId>
  <artifactId>typesafeDummy</artifactId>
  <packaging>war</packaging>
  <version>1.0-SNAPSHOT</version>
  <name>Dummy</name>
  <url>http://127.0.0.1</url>
  <dependencies>
    <dependency>
      <groupId>{group}</groupId>
      <artifactId>{artifact}</artifactId>
      <version>{version}</version>
    </dependency>
  </dependencies>
"""

_DUMMY_POM_REPOSITORY = """\
  <repositories>
    <repository>
      <id>extrarepo</id>
      <name>extra repository</name>
      <url>{url}</url>
    </repository>
  </repositories>
"""


class AvailabilityError(Exception):
    """A required upstream artifact cannot be resolved."""


def coordinate(group: str, artifact: str, version: str) -> str:
    return f"{group}:{artifact}:jar:{version}"


def render_dummy_pom(
    group: str, artifact: str, version: str, extra_repo: str | None = None
) -> str:
    """POM of a throwaway project depending on one artifact, used to probe resolution."""
    pom = _DUMMY_POM_HEAD.format(group=group, artifact=artifact, version=version)
    if extra_repo:
        pom += _DUMMY_POM_REPOSITORY.format(url=extra_repo)
    return pom + "</project>\n"


def parse_manifest(text: str) -> dict[str, str]:
    """Parse a jar manifest, joining continuation lines."""
    headers: dict[str, str] = {}
    last: str | None = None
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if raw.startswith(" ") and last is not None:
            headers[last] += raw[1:]
            continue
        if ":" in raw:
            key, _, value = raw.partition(":")
            last = key.strip()
            headers[last] = value.strip()
    return headers


class MavenClient:
    """Thin wrapper around ``mvn`` bound to one local repository."""

    def __init__(
        self,
        local_repo: Path,
        work_dir: Path,
        extra_opts: Sequence[str] = (),
        executable: str = "mvn",
        timeout_s: float | None = None,
    ) -> None:
        self._local_repo = Path(local_repo)
        self._work_dir = Path(work_dir)
        self._extra_opts = list(extra_opts)
        self._mvn = executable
        self._timeout_s = timeout_s

    @property
    def base_opts(self) -> list[str]:
        return ["-e", "-U", f"-Dmaven.repo.local={self._local_repo}", *self._extra_opts]

    async def is_available(
        self,
        group: str,
        artifact: str,
        version: str,
        extra_repo: str | None = None,
    ) -> bool:
        """True if Maven can resolve the artifact (locally, remotely or from extra_repo)."""
        probe_dir = self._work_dir / "availability"
        shutil.rmtree(probe_dir, ignore_errors=True)
        probe_dir.mkdir(parents=True)
        (probe_dir / "pom.xml").write_text(
            render_dummy_pom(group, artifact, version, extra_repo), encoding="utf-8"
        )
        result = await run_command(
            [self._mvn, *self.base_opts, "compile"],
            cwd=probe_dir,
            timeout_s=self._timeout_s,
            check=False,
        )
        found = result.ok
        logger.debug(
            "%s %s", coordinate(group, artifact, version), "found" if found else "not found"
        )
        return found

    async def check_needed(
        self,
        group: str,
        artifact: str,
        version: str,
        extra_repo: str | None = None,
    ) -> None:
        """Raise AvailabilityError naming the coordinate if it cannot be resolved."""
        if not await self.is_available(group, artifact, version, extra_repo):
            raise AvailabilityError(f"{coordinate(group, artifact, version)} is needed")

    async def run(
        self,
        cwd: Path,
        goals: Sequence[str],
        profiles: Sequence[str] = (),
        properties: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        args = [
            self._mvn,
            *self.base_opts,
            *(f"-P{p}" for p in profiles),
            *define_flags(properties or {}),
            *goals,
        ]
        logger.info("mvn %s in %s", " ".join(goals), cwd)
        await run_command(args, cwd=cwd, env=env, timeout_s=self._timeout_s)

    async def run_script(
        self,
        cwd: Path,
        script: str,
        goals: Sequence[str],
        profiles: Sequence[str] = (),
        properties: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run a wrapper script of the project that forwards its arguments to mvn."""
        args = [
            script,
            *self.base_opts,
            *(f"-P{p}" for p in profiles),
            *define_flags(properties or {}),
            *goals,
        ]
        logger.info("%s %s in %s", script, " ".join(goals), cwd)
        await run_command(args, cwd=cwd, env=env, timeout_s=self._timeout_s)

    def jar_path(self, group: str, artifact: str, version: str) -> Path:
        return (
            self._local_repo.joinpath(*group.split("."))
            / artifact
            / version
            / f"{artifact}-{version}.jar"
        )

    def osgi_version(self, group: str, artifact: str, version: str) -> str:
        """Bundle-Version declared in the manifest of a jar from the local repository.

        Raises:
            AvailabilityError: If the jar is missing or declares no Bundle-Version.
        """
        jar = self.jar_path(group, artifact, version)
        try:
            with zipfile.ZipFile(jar) as archive:
                manifest = archive.read("META-INF/MANIFEST.MF").decode("utf-8", errors="replace")
        except (OSError, KeyError, zipfile.BadZipFile) as exc:
            raise AvailabilityError(
                f"Cannot read manifest of {coordinate(group, artifact, version)} at {jar}: {exc}"
            ) from exc
        bundle_version = parse_manifest(manifest).get("Bundle-Version", "")
        if not bundle_version:
            raise AvailabilityError(
                f"{coordinate(group, artifact, version)} has no Bundle-Version"
            )
        return bundle_version
