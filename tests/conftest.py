"""
Test Configuration - Shared fixtures for sync and query tests.

Uses pytest fixtures to create isolated manifest trees and a scripted mirror.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Union

import pytest

from pkgmirror.core.config import RepoConfig
from pkgmirror.domain.models import ChangeSet, PackageRecord
from pkgmirror.services.mirror import SourceMirror


class FakeMirror(SourceMirror):
    """
    Mirror that replays scripted results.

    Each call to clone_or_update() pops the next ChangeSet (or raises the next
    exception). Once the script runs out it keeps reporting NO_CHANGES.
    """

    def __init__(self, *results: Union[ChangeSet, Exception]):
        self.results: List[Union[ChangeSet, Exception]] = list(results)
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.entered: Optional[asyncio.Event] = None

    def hold(self) -> None:
        """Block the next clone_or_update() until release() is called."""
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    def release(self) -> None:
        if self.gate is not None:
            self.gate.set()

    async def clone_or_update(self) -> ChangeSet:
        self.calls += 1
        if self.gate is not None:
            self.entered.set()
            await self.gate.wait()
            self.gate = None
        if not self.results:
            return ChangeSet.no_changes()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def manifest_yaml(
    package_id: Optional[str],
    name: Optional[str] = None,
    version: Optional[str] = "1.0.0",
    publisher: Optional[str] = None,
) -> str:
    lines = []
    if package_id is not None:
        lines.append(f"PackageIdentifier: {package_id}")
    if version is not None:
        lines.append(f"PackageVersion: {version}")
    if name is not None:
        lines.append(f"PackageName: {name}")
    if publisher is not None:
        lines.append(f"Publisher: {publisher}")
    lines.append("ManifestType: singleton")
    lines.append("ManifestVersion: 1.6.0")
    return "\n".join(lines) + "\n"


def multi_file_manifests(package_id: str, version: str, name: str, publisher: str) -> Dict[str, str]:
    """
    The files winget-pkgs uses for one package version, keyed by file name.

    Only the defaultLocale manifest carries the name and publisher.
    """
    header = f"PackageIdentifier: {package_id}\nPackageVersion: {version}\n"
    return {
        f"{package_id}.yaml": header + "DefaultLocale: en-US\nManifestType: version\nManifestVersion: 1.6.0\n",
        f"{package_id}.installer.yaml": header + (
            "Installers:\n"
            "- Architecture: x64\n"
            "  InstallerType: msix\n"
            "  InstallerUrl: https://example.invalid/setup.msix\n"
            "  InstallerSha256: 0000000000000000000000000000000000000000000000000000000000000000\n"
            "ManifestType: installer\nManifestVersion: 1.6.0\n"
        ),
        f"{package_id}.locale.en-US.yaml": header + (
            f"PackageLocale: en-US\nPublisher: {publisher}\nPackageName: {name}\n"
            "License: MIT\nShortDescription: Test package\n"
            "ManifestType: defaultLocale\nManifestVersion: 1.6.0\n"
        ),
        f"{package_id}.locale.de-DE.yaml": header + (
            "PackageLocale: de-DE\nShortDescription: Testpaket\n"
            "ManifestType: locale\nManifestVersion: 1.6.0\n"
        ),
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for the checkout."""
    tmp = tempfile.mkdtemp(prefix="pkgmirror_test_")
    # Resolve to handle macOS /var -> /private/var symlink
    resolved = Path(tmp).resolve()
    yield resolved
    shutil.rmtree(str(resolved), ignore_errors=True)


@pytest.fixture
def repo_config(temp_dir: Path) -> RepoConfig:
    return RepoConfig(
        url="https://example.invalid/winget-pkgs.git",
        local_path=str(temp_dir / "checkout"),
        manifest_path="manifests",
        update_interval="60",
        parser="winget",
    )


@pytest.fixture
def write_manifest(repo_config: RepoConfig) -> Callable[..., str]:
    """
    Write a winget manifest into the checkout and return its relative path.

    Layout follows winget-pkgs: manifests/<letter>/<Publisher>/<Name>/<version>/<id>.yaml
    """
    root = Path(repo_config.local_path)

    def _write(package_id: str, content: Optional[str] = None, version: str = "1.0.0", **fields) -> str:
        parts = package_id.split(".")
        relative = "/".join(
            ["manifests", parts[0][0].lower(), *parts, version, f"{package_id}.yaml"]
        )
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if content is None:
            content = manifest_yaml(package_id, version=version, **fields)
        path.write_text(content, encoding="utf-8")
        return relative

    return _write


@pytest.fixture
def make_record() -> Callable[..., PackageRecord]:
    def _make(package_id: str, name: Optional[str] = None, **fields) -> PackageRecord:
        return PackageRecord(id=package_id, name=name or package_id, **fields)

    return _make


@pytest.fixture
def write_version_dir(repo_config: RepoConfig) -> Callable[..., List[str]]:
    """
    Write a multi-file winget package version and return the relative paths.
    """
    root = Path(repo_config.local_path)

    def _write(package_id: str, version: str, name: str, publisher: str) -> List[str]:
        parts = package_id.split(".")
        directory = "/".join(["manifests", parts[0][0].lower(), *parts, version])
        written = []
        for file_name, content in multi_file_manifests(package_id, version, name, publisher).items():
            path = root / directory / file_name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            written.append(f"{directory}/{file_name}")
        return written

    return _write
