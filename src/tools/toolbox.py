# src/tools/toolbox.py — v1
"""Bundle of the external-tool clients a build run uses.

Stages receive a Toolbox instead of constructing clients themselves, so a
run (or a test) can swap any of them out in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from uberbuild.cache.base_cache_store import BaseCacheStore
from uberbuild.cache.cache_factory import create_cache_store
from uberbuild.tools.ant import AntClient
from uberbuild.tools.download import ArtifactDownloader
from uberbuild.tools.git import GitClient
from uberbuild.tools.maven import MavenClient
from uberbuild.tools.publish import Publisher
from uberbuild.tools.signing import KeystoreSigner

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext


@dataclass
class Toolbox:
    cache: BaseCacheStore
    git: GitClient
    maven: MavenClient
    ant: AntClient
    downloader: ArtifactDownloader
    signer: KeystoreSigner | None = None
    publisher: Publisher | None = None


def create_toolbox(context: BuildContext) -> Toolbox:
    """Create the clients configured by the run's settings.

    The signer exists only when artifacts are signed, the publisher only
    when publishing is enabled.
    """
    settings = context.settings
    timeout_s = context.timeout_s

    signer = None
    if context.sign_artifacts:
        signer = KeystoreSigner(
            keystore_dir=context.path_setting("keystore_dir"),
            password=settings.keystore_pass,
            alias=settings.keystore_alias,
            timeout_s=timeout_s,
        )

    publisher = None
    if settings.publish:
        publisher = Publisher(settings.publish_host, timeout_s=timeout_s)

    return Toolbox(
        cache=create_cache_store(settings),
        git=GitClient(timeout_s=timeout_s),
        maven=MavenClient(
            local_repo=context.local_m2_repo,
            work_dir=context.tmp_dir,
            extra_opts=context.maven_extra_opts,
            timeout_s=timeout_s,
        ),
        ant=AntClient(ant_opts=settings.ant_opts, timeout_s=timeout_s),
        downloader=ArtifactDownloader(),
        signer=signer,
        publisher=publisher,
    )
