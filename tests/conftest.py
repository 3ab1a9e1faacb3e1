# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides settings factories, a recording fake for every external tool and a
real directory cache under tmp_path. No test runs git, mvn, ant or reaches
the network.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from uberbuild.cache.directory_store import DirectoryCacheStore
from uberbuild.config.plugins import PLUGIN_REGISTRY
from uberbuild.config.settings import Settings
from uberbuild.pipeline.context import BuildContext
from uberbuild.pipeline.stages.product import PRODUCT_OUTPUT
from uberbuild.tools.toolbox import Toolbox

SCALA_IDE_REPO = "git://example.org/scala-ide.git"
REFACTORING_REPO = "git://example.org/scala-refactoring.git"
SCALARIFORM_REPO = "git://example.org/scalariform.git"
WORKSHEET_REPO = "git://example.org/worksheet.git"
PLAY_REPO = "git://example.org/play.git"
PRODUCT_REPO = "git://example.org/product.git"

RELEASE_SCALA_OSGI = "2.10.2.v20130530-074427-VFINAL-60d7a5b"

# Every update site a build can produce, relative to the Maven working directory.
_BUILD_OUTPUTS = [
    "org.scala-ide.scala.update-site/target/site",
    "org.scala-refactoring.update-site/target/site",
    "scalariform.update/target/site",
    "org.scala-ide.sdt.update-site/target/site",
    str(PRODUCT_OUTPUT),
    *(p.update_site for p in PLUGIN_REGISTRY.values()),
]


class FakeGit:
    """Git stand-in: each remote URL is "at" the revision set in ``revisions``."""

    def __init__(self, revisions: dict[str, str] | None = None) -> None:
        self.revisions = dict(revisions or {})
        self.fetches: list[tuple[Path, str, str, str | None]] = []
        self.cleaned: list[Path] = []

    async def fetch_branch(self, local_dir, remote_url, ref, extra_fetch=None) -> str:
        local_dir = Path(local_dir)
        local_dir.mkdir(parents=True, exist_ok=True)
        self.fetches.append((local_dir, remote_url, ref, extra_fetch))
        return self.revisions.get(remote_url, "0000000")

    async def clean(self, local_dir) -> None:
        self.cleaned.append(Path(local_dir))


class FakeMaven:
    """Maven stand-in: every build writes all known update sites under its cwd."""

    def __init__(self, osgi_version: str = RELEASE_SCALA_OSGI, available: bool = True) -> None:
        self.osgi = osgi_version
        self.available = available
        self.builds: list[tuple[Path, tuple[str, ...], dict[str, str]]] = []
        self.checked: list[tuple[str, str, str, str | None]] = []

    async def is_available(self, group, artifact, version, extra_repo=None) -> bool:
        self.checked.append((group, artifact, version, extra_repo))
        return self.available

    async def check_needed(self, group, artifact, version, extra_repo=None) -> None:
        from uberbuild.tools.maven import AvailabilityError, coordinate

        if not await self.is_available(group, artifact, version, extra_repo):
            raise AvailabilityError(f"{coordinate(group, artifact, version)} is needed")

    def osgi_version(self, group, artifact, version) -> str:
        return self.osgi

    async def run(self, cwd, goals, profiles=(), properties=None, env=None) -> None:
        self._build(Path(cwd), tuple(goals), dict(properties or {}))

    async def run_script(
        self, cwd, script, goals, profiles=(), properties=None, env=None
    ) -> None:
        self._build(Path(cwd), (script, *goals), dict(properties or {}))

    def _build(self, cwd: Path, goals: tuple[str, ...], properties: dict[str, str]) -> None:
        self.builds.append((cwd, goals, properties))
        for relative in _BUILD_OUTPUTS:
            site = cwd / relative
            site.mkdir(parents=True, exist_ok=True)
            (site / "content.xml").write_text(f"{cwd.name} {' '.join(goals)}\n")


@pytest.fixture
def make_settings(tmp_path: Path):
    """Factory for a valid release Settings rooted in tmp_path; kwargs override."""

    def _make(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "operation": "release",
            "build_dir": str(tmp_path / "build"),
            "local_m2_repo": str(tmp_path / "m2"),
            "p2_cache_dir": str(tmp_path / "p2-cache"),
            "scala_version": "2.10.2",
            "sbt_version": "0.13.0",
            "scala_ide_dir": str(tmp_path / "src" / "scala-ide"),
            "scala_ide_git_repo": SCALA_IDE_REPO,
            "scala_ide_git_branch": "master",
            "eclipse_platform": "indigo",
            "version_tag": "v-test",
            "scala_refactoring_dir": str(tmp_path / "src" / "scala-refactoring"),
            "scala_refactoring_git_repo": REFACTORING_REPO,
            "scala_refactoring_git_branch": "master",
            "scalariform_dir": str(tmp_path / "src" / "scalariform"),
            "scalariform_git_repo": SCALARIFORM_REPO,
            "scalariform_git_branch": "master",
            "keystore_dir": str(tmp_path / "keystore"),
            "keystore_pass": "s3cret",
            "required_java_version": "",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def release_settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def make_context(tmp_path: Path):
    def _make(settings: Settings) -> BuildContext:
        scratch = tmp_path / "run-tmp"
        scratch.mkdir(exist_ok=True)
        return BuildContext.from_settings(settings, tmp_dir=scratch, run_id="20260101_0000_test0")

    return _make


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit(
        {
            SCALA_IDE_REPO: "ide1111",
            REFACTORING_REPO: "ref2222",
            SCALARIFORM_REPO: "sf3333",
            WORKSHEET_REPO: "ws4444",
            PLAY_REPO: "play5555",
            PRODUCT_REPO: "prod6666",
        }
    )


@pytest.fixture
def fake_maven() -> FakeMaven:
    return FakeMaven()


@pytest.fixture
def cache_store(tmp_path: Path) -> DirectoryCacheStore:
    return DirectoryCacheStore(tmp_path / "p2-cache")


@pytest.fixture
def fake_tools(cache_store, fake_git, fake_maven) -> Toolbox:
    """Toolbox of fakes around a real directory cache."""
    signer = MagicMock()
    signer.verify = AsyncMock()
    signer.sign = AsyncMock()
    publisher = MagicMock()
    publisher.upload = AsyncMock(side_effect=lambda archive, remote_dir: f"{remote_dir}/{archive.name}")
    downloader = MagicMock()
    downloader.is_available = AsyncMock(return_value=False)
    downloader.download = AsyncMock()
    ant = MagicMock()
    ant.run = AsyncMock()
    return Toolbox(
        cache=cache_store,
        git=fake_git,
        maven=fake_maven,
        ant=ant,
        downloader=downloader,
        signer=signer,
        publisher=publisher,
    )


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "p2-cache"
    cache.mkdir()
    return cache
