# src/tools/signing.py — v1
"""Jar signing of update sites with the release keystore."""

from __future__ import annotations

import logging
from pathlib import Path

from uberbuild.tools.process import run_command

logger = logging.getLogger(__name__)

KEYSTORE_FILE = "typesafe.keystore"
SIGNING_SCRIPT = "plugin-signing.sh"


class KeystoreSigner:
    """Verifies the keystore and signs update sites through the project's signing script."""

    def __init__(
        self,
        keystore_dir: Path,
        password: str,
        alias: str = "typesafe",
        keytool: str = "keytool",
        timeout_s: float | None = None,
    ) -> None:
        self._keystore_dir = Path(keystore_dir)
        self._password = password
        self._alias = alias
        self._keytool = keytool
        self._timeout_s = timeout_s

    @property
    def keystore_path(self) -> Path:
        return self._keystore_dir / KEYSTORE_FILE

    async def verify(self) -> None:
        """Fail with BuildError unless the keystore opens with the password and holds the alias."""
        await run_command(
            [
                self._keytool,
                "-list",
                "-keystore",
                str(self.keystore_path),
                "-storepass",
                self._password,
                "-alias",
                self._alias,
            ],
            timeout_s=self._timeout_s,
            secrets=[self._password],
        )
        logger.info("Keystore %s verified", self.keystore_path)

    async def sign(self, project_dir: Path) -> None:
        """Run the signing script shipped in an update-site project directory."""
        logger.info("Signing jars in %s", project_dir)
        await run_command(
            [
                f"./{SIGNING_SCRIPT}",
                str(self.keystore_path),
                self._alias,
                self._password,
                self._password,
            ],
            cwd=project_dir,
            timeout_s=self._timeout_s,
            secrets=[self._password],
        )
