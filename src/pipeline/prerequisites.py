# src/pipeline/prerequisites.py — v1
"""Environment checks run before any stage: Java version, executables, keystore."""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from typing import TYPE_CHECKING

from uberbuild.config.settings import ConfigurationError, missing_parameter
from uberbuild.tools.process import run_command

if TYPE_CHECKING:
    from uberbuild.pipeline.context import BuildContext
    from uberbuild.tools.toolbox import Toolbox

logger = logging.getLogger(__name__)

_JAVA_VERSION = re.compile(r'version\s+"(?P<version>[^"]+)"')


class PrerequisiteError(Exception):
    """A required executable, Java version or keystore is not available."""


def parse_java_version(output: str) -> str | None:
    """Version string from ``java -version`` output, e.g. "1.6.0_45"."""
    match = _JAVA_VERSION.search(output)
    return match.group("version") if match else None


def java_version_matches(version: str, required: str) -> bool:
    """True if version is required or a dotted refinement of it ("1.6.0_45" for "1.6")."""
    return version == required or version.startswith(f"{required}.")


def required_executables(context: BuildContext) -> dict[str, str]:
    """Executable name -> reason it is needed, for the configured run."""
    needed = {
        "git": "git is required on PATH to fetch sources",
        "mvn": "mvn is required on PATH to build",
    }
    if context.validator:
        needed["ant"] = "Ant is required to use a special version of Scala"
    if context.sign_artifacts:
        needed["keytool"] = "keytool is required on PATH to sign the jars"
        needed["eclipse"] = "eclipse is required on PATH to sign the jars"
    if context.settings.publish and not context.dry_run:
        needed["ssh"] = "ssh is required on PATH to publish"
        needed["scp"] = "scp is required on PATH to publish"
    return needed


async def check_java_version(required: str, java: str = "java") -> str:
    """Return the running Java version, failing unless it matches required."""
    result = await run_command([java, "-version"], check=False)
    # java -version prints to stderr
    version = parse_java_version(result.stderr) or parse_java_version(result.stdout)
    if version is None or not java_version_matches(version, required):
        raise PrerequisiteError(
            f"Please run the build with Java {required}. Current version is: {version}."
        )
    return version


def check_executables(
    context: BuildContext, which: Callable[[str], str | None] = shutil.which
) -> None:
    for executable, reason in required_executables(context).items():
        if which(executable) is None:
            raise PrerequisiteError(reason)


async def check_keystore(context: BuildContext, tools: Toolbox) -> None:
    """Fetch the keystore checkout if missing, then make sure it opens."""
    settings = context.settings
    keystore_dir = context.path_setting("keystore_dir")
    if not keystore_dir.is_dir():
        if not settings.keystore_git_repo:
            raise ConfigurationError(missing_parameter("keystore_git_repo"))
        logger.info("Fetching keystore into %s", keystore_dir)
        await tools.git.fetch_branch(keystore_dir, settings.keystore_git_repo, "master")
    if tools.signer is None:
        raise PrerequisiteError("Signing requested but no keystore signer is configured")
    await tools.signer.verify()


async def check_prerequisites(
    context: BuildContext,
    tools: Toolbox,
    which: Callable[[str], str | None] = shutil.which,
) -> None:
    """Run every check relevant to the configured operation.

    Raises:
        PrerequisiteError: On the first missing tool or wrong Java version.
        ConfigurationError: If the keystore must be fetched but no repository is set.
        BuildError: If the keystore cannot be fetched or opened.
    """
    check_executables(context, which)
    required_java = context.settings.required_java_version.strip()
    if required_java:
        version = await check_java_version(required_java)
        logger.info("Java %s", version)
    if context.sign_artifacts:
        await check_keystore(context, tools)
