"""
Local mirror of the upstream manifest repository.

The orchestrator only needs one capability from the mirror: bring the local
checkout up to date and say what changed. GitMirror implements it with the
git command line, run as asyncio subprocesses so the event loop keeps serving
queries while a clone or pull is in progress.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from pkgmirror.core.config import RepoConfig
from pkgmirror.domain.errors import MirrorError
from pkgmirror.domain.models import ChangeSet

logger = logging.getLogger(__name__)


class SourceMirror(ABC):
    """
    Abstract base class for a local mirror of the manifest repository.
    """

    @abstractmethod
    async def clone_or_update(self) -> ChangeSet:
        """
        Clone the repository if it is absent, otherwise pull it.

        Returns FRESH_CLONE when no diff is available, NO_CHANGES when the pull
        brought nothing new, or CHANGED with the touched paths. Raises
        MirrorError when the repository cannot be reached or updated.
        """
        pass


class GitMirror(SourceMirror):
    """Mirror backed by a git checkout at ``config.local_path``."""

    def __init__(self, config: RepoConfig, git_executable: str = "git"):
        self.config = config
        self.git_executable = git_executable
        self.local_path = Path(config.local_path)

    def _repo_exists(self) -> bool:
        return (self.local_path / ".git").exists()

    async def _run_git(self, *args: str, cwd: Optional[Path] = None) -> str:
        cmd = [self.git_executable, *args]
        subcommand = args[2] if args[0] == "-c" else args[0]
        logger.debug(f"Running command: {' '.join(cmd)} (cwd={cwd})")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd) if cwd else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise MirrorError(f"git executable not found: {self.git_executable}", cmd) from e

        try:
            out, err = await asyncio.wait_for(
                process.communicate(), timeout=self.config.git_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            await _kill(process)
            raise MirrorError(
                f"git {subcommand} timed out after {self.config.git_timeout_seconds:.0f}s", cmd
            ) from e
        except asyncio.CancelledError:
            await _kill(process)
            raise

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        if process.returncode != 0:
            raise MirrorError(
                f"git {subcommand} failed with exit code {process.returncode}: {stderr.strip()}",
                cmd,
                stderr,
            )
        return stdout

    async def _head(self) -> str:
        return (await self._run_git("rev-parse", "HEAD", cwd=self.local_path)).strip()

    async def clone_or_update(self) -> ChangeSet:
        try:
            if not self._repo_exists():
                logger.info(f"Cloning repository {self.config.url} into {self.local_path}...")
                self.local_path.parent.mkdir(parents=True, exist_ok=True)
                await self._run_git("clone", self.config.url, str(self.local_path))
                logger.info("Repository cloned successfully")
                return ChangeSet.fresh_clone()

            logger.info("Updating repository...")
            before = await self._head()
            await self._run_git("pull", "--ff-only", cwd=self.local_path)
            after = await self._head()
        except MirrorError as e:
            logger.error(f"Git operation failed: {e}")
            raise

        if before == after:
            logger.info("No changes found")
            return ChangeSet.no_changes()

        changed = await self._changed_files(before, after)
        if changed is None:
            return ChangeSet.fresh_clone()

        logger.info(f"Repository updated {before[:8]}..{after[:8]} with {len(changed)} changed manifest files")
        return ChangeSet.changed(changed)

    async def _changed_files(self, before: str, after: str) -> Optional[List[str]]:
        """
        Paths under the manifest directory touched between two commits.

        None means the diff could not be computed and a full scan is needed.
        """
        args = ["-c", "core.quotepath=off", "diff", "--name-only", f"{before}..{after}"]
        manifest_dir = self.config.manifest_dir
        if manifest_dir != ".":
            args += ["--", manifest_dir]

        try:
            diff = await self._run_git(*args, cwd=self.local_path)
        except MirrorError as e:
            logger.warning(f"Could not get changed files, will do full scan: {e}")
            return None

        return [line.strip() for line in diff.splitlines() if line.strip()]


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
