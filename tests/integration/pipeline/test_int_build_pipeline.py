# tests/integration/pipeline/test_int_build_pipeline.py — v1
"""Integration tests for the build pipeline.

Covers: api/facade.py, pipeline/registry.py, pipeline/runner.py,
        pipeline/stages/ (all stages), cache/directory_store.py

Each test drives run_build more than once against the same cache and
checks which stages are rebuilt when one upstream revision moves.
"""

from __future__ import annotations

import json

import pytest

from tests.conftest import SCALARIFORM_REPO
from uberbuild.api.facade import run_build
from uberbuild.config.settings import ConfigurationError

pytestmark = pytest.mark.integration

CORE = ["toolchain", "scala-refactoring", "scalariform", "scala-ide"]


class TestCacheReuse:
    @pytest.mark.asyncio
    async def test_second_run_is_all_hits(self, release_settings, fake_tools, keystore, which):
        first = await run_build(release_settings, tools=fake_tools, which=which)
        assert first.cache_misses == CORE
        assert first.cache_hits == []

        fake_tools.maven.builds.clear()
        second = await run_build(release_settings, tools=fake_tools, which=which)
        assert second.cache_hits == CORE
        assert second.cache_misses == []
        assert fake_tools.maven.builds == []
        fake_tools.signer.sign.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_entries_laid_out_by_key(self, release_settings, fake_tools, keystore, which, tmp_path):
        result = await run_build(release_settings, tools=fake_tools, which=which)
        fp = result.ledger.fingerprint_of("scala-ide")
        entry = tmp_path / "p2-cache" / fp.key
        assert result.ledger.location_of("scala-ide") == entry
        assert (entry / "content.xml").is_file()
        assert not [p for p in entry.parent.iterdir() if p.name.startswith(".")]

    @pytest.mark.asyncio
    async def test_scala_update_rebuilds_everything(self, release_settings, fake_tools, keystore, which):
        await run_build(release_settings, tools=fake_tools, which=which)
        fake_tools.maven.osgi = "2.10.2.v20130601-000000-VFINAL-1234567"
        result = await run_build(release_settings, tools=fake_tools, which=which)
        assert result.cache_misses == CORE

    @pytest.mark.asyncio
    async def test_library_update_rebuilds_dependents_only(
        self, release_settings, fake_tools, keystore, which
    ):
        await run_build(release_settings, tools=fake_tools, which=which)
        fake_tools.git.revisions[SCALARIFORM_REPO] = "sf9999"
        result = await run_build(release_settings, tools=fake_tools, which=which)
        assert result.cache_hits == ["toolchain", "scala-refactoring"]
        assert result.cache_misses == ["scalariform", "scala-ide"]

    @pytest.mark.asyncio
    async def test_force_rebuild_overwrites(self, make_settings, fake_tools, keystore, which):
        await run_build(make_settings(), tools=fake_tools, which=which)
        result = await run_build(make_settings(cache_force_rebuild=True), tools=fake_tools, which=which)
        assert result.cache_misses == CORE
        assert result.cache_hits == []


class TestOperations:
    @pytest.mark.asyncio
    async def test_release_and_validator_keys_differ(
        self, make_settings, fake_tools, keystore, which, tmp_path
    ):
        release = await run_build(make_settings(), tools=fake_tools, which=which)
        fake_tools.maven.builds.clear()
        validator = await run_build(
            make_settings(
                operation="scala-validator",
                scala_git_hash="abc1234",
                scala_git_repo="git://example.org/scala.git",
                scala_dir=str(tmp_path / "src" / "scala"),
                zinc_build_dir=str(tmp_path / "src" / "zinc"),
                zinc_build_git_repo="git://example.org/zinc.git",
                zinc_build_git_branch="master",
            ),
            tools=fake_tools,
            which=which,
        )
        assert validator.cache_misses == CORE
        release_key = release.ledger.fingerprint_of("scala-ide").key
        validator_key = validator.ledger.fingerprint_of("scala-ide").key
        assert release_key.startswith("scala-ide/ide1111-S/")
        assert validator_key.startswith("scala-ide/ide1111/abc1234/")

    @pytest.mark.asyncio
    async def test_plugins_and_product(self, make_settings, plugin_settings, fake_tools, keystore, which):
        settings = make_settings(plugins="worksheet", product=True, **plugin_settings)
        first = await run_build(settings, tools=fake_tools, which=which)
        assert first.cache_misses == [*CORE, "worksheet", "product"]

        settings = make_settings(plugins="worksheet,play", product=True, **plugin_settings)
        second = await run_build(settings, tools=fake_tools, which=which)
        assert second.cache_misses == ["play", "product"]
        assert "worksheet" in second.cache_hits
        assert first.ledger.fingerprint_of("product").key != second.ledger.fingerprint_of("product").key

        location = second.ledger.location_of("product")
        assert (location / "content.xml").is_file()

    @pytest.mark.asyncio
    async def test_dry_run_publish_uploads_nothing(
        self, make_settings, fake_tools, keystore, which, tmp_path
    ):
        settings = make_settings(
            operation="release-dryrun", publish=True, publish_host="dl", publish_root="/srv"
        )
        result = await run_build(settings, tools=fake_tools, which=which)
        fake_tools.publisher.upload.assert_not_awaited()
        assert result.ledger.published == []
        report = json.loads((tmp_path / "build" / "uber-build-report.json").read_text())
        assert report["stages"]["publish"]["status"] == "done"

    @pytest.mark.asyncio
    async def test_publish_after_cache_hit(self, make_settings, fake_tools, keystore, which):
        settings = make_settings(publish=True, publish_host="dl", publish_root="/srv")
        await run_build(settings, tools=fake_tools, which=which)
        result = await run_build(settings, tools=fake_tools, which=which)
        assert result.cache_hits == CORE
        assert result.ledger.published == ["dl:/srv/dev/scala-ide/v-test/scala-ide-v-test.zip"]

    @pytest.mark.asyncio
    async def test_unsupported_scala_fails_before_any_fetch(self, make_settings, fake_tools, which):
        settings = make_settings().model_copy(update={"scala_version": "2.9.3"})
        with pytest.raises(ConfigurationError, match="Not supported version of Scala: 2.9.3"):
            await run_build(settings, tools=fake_tools, which=which)
        assert fake_tools.git.fetches == []
        assert fake_tools.maven.checked == []
