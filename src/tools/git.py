# src/tools/git.py — v1
"""Git working-copy management: clone or update a checkout and report its revision."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from uberbuild.tools.process import run_command

logger = logging.getLogger(__name__)

REMOTE_PREFIX = "remote"
_REMOTE_URL_LINE = re.compile(r"^remote\.(?P<name>[^.]+)\.url\s+(?P<url>.+)$")


def remote_name(index: int) -> str:
    return f"{REMOTE_PREFIX}{index:02d}"


def next_remote_name(existing: list[str]) -> str:
    """Next free ``remoteNN`` name after the highest one already configured."""
    indexes = [
        int(name[len(REMOTE_PREFIX):])
        for name in existing
        if name.startswith(REMOTE_PREFIX) and name[len(REMOTE_PREFIX):].isdigit()
    ]
    return remote_name(max(indexes, default=0) + 1)


def pull_request_refspec(remote: str, namespace: str) -> str:
    return f"+refs/pull/*/head:refs/remotes/{remote}/{namespace}/*"


class GitClient:
    """Fetch sources to a branch, tag or commit, and read the resulting revision."""

    def __init__(self, executable: str = "git", timeout_s: float | None = None) -> None:
        self._git = executable
        self._timeout_s = timeout_s

    async def fetch_branch(
        self,
        local_dir: Path,
        remote_url: str,
        ref: str,
        extra_fetch: str | None = None,
    ) -> str:
        """Bring local_dir to ref from remote_url and return ``HEAD``'s commit hash.

        A missing working copy is cloned with a ``remote01`` remote. An existing one
        reuses the remote already pointing at remote_url, or gets a new
        ``remoteNN`` remote. extra_fetch adds a pull-request refspec under that
        namespace (e.g. "pr" makes ``remote01/pr/123`` available).
        """
        local_dir = Path(local_dir)
        if not local_dir.is_dir():
            logger.info("Cloning git repo %s", remote_url)
            remote = remote_name(1)
            local_dir.parent.mkdir(parents=True, exist_ok=True)
            await self._git_run(["clone", "-o", remote, remote_url, str(local_dir)])
        else:
            remotes = await self.remotes(local_dir)
            remote = next((name for name, url in remotes.items() if url == remote_url), "")
            if not remote:
                remote = next_remote_name(list(remotes))
                logger.info("Adding remote git repo %s as %s", remote_url, remote)
                await self._git_run(["remote", "add", remote, remote_url], cwd=local_dir)
            logger.info("Fetching update for %s", remote_url)
            await self._git_run(["fetch", remote], cwd=local_dir)

        if extra_fetch:
            refspec = pull_request_refspec(remote, extra_fetch)
            configured = await self._git_run(
                ["config", "--get-all", f"remote.{remote}.fetch"], cwd=local_dir, check=False
            )
            if refspec not in configured.splitlines():
                logger.info("Adding extra fetch config %s", refspec)
                await self._git_run(
                    ["config", "--add", f"remote.{remote}.fetch", refspec], cwd=local_dir
                )
                await self._git_run(["fetch", remote], cwd=local_dir)

        logger.info("Checking out %s", ref)
        await self._git_run(["checkout", "-f", "-q", ref], cwd=local_dir)
        return await self.rev_parse(local_dir)

    async def remotes(self, local_dir: Path) -> dict[str, str]:
        """Map of remote name to URL for a working copy."""
        output = await self._git_run(
            ["config", "--get-regexp", r"remote\..*\.url"], cwd=local_dir, check=False
        )
        remotes: dict[str, str] = {}
        for line in output.splitlines():
            match = _REMOTE_URL_LINE.match(line.strip())
            if match:
                remotes[match.group("name")] = match.group("url").strip()
        return remotes

    async def rev_parse(self, local_dir: Path, ref: str = "HEAD") -> str:
        return (await self._git_run(["rev-parse", ref], cwd=local_dir)).strip()

    async def clean(self, local_dir: Path) -> None:
        """Remove every untracked and ignored file."""
        await self._git_run(["clean", "-fxd"], cwd=local_dir)

    async def _git_run(
        self, args: list[str], cwd: Path | None = None, check: bool = True
    ) -> str:
        result = await run_command(
            [self._git, *args], cwd=cwd, timeout_s=self._timeout_s, check=check
        )
        return result.stdout if result.ok else ""
