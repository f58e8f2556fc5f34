from typing import Optional

from pkgmirror.core.config import RepoConfig, ServerConfig, load_repo_config, load_server_config
from pkgmirror.services.package_service import PackageService

_repo_config: Optional[RepoConfig] = None
_server_config: Optional[ServerConfig] = None
_package_service: Optional[PackageService] = None


def get_repo_config() -> RepoConfig:
    global _repo_config
    if _repo_config is None:
        _repo_config = load_repo_config()
    return _repo_config


def get_server_config() -> ServerConfig:
    global _server_config
    if _server_config is None:
        _server_config = load_server_config()
    return _server_config


def get_package_service() -> PackageService:
    global _package_service
    if _package_service is None:
        _package_service = PackageService(get_repo_config())
    return _package_service
