"""
Repository and server configuration.

Values come from environment variables with defaults that mirror the public
winget-pkgs repository. Both models are built once at startup and treated as
read-only afterwards.
"""
from __future__ import annotations

import os
import posixpath
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pkgmirror.domain.errors import ConfigurationError

REPO_URL_ENV_VAR = "REPO_URL"
LOCAL_PATH_ENV_VAR = "LOCAL_PATH"
MANIFESTS_PATH_ENV_VAR = "MANIFESTS_PATH"
UPDATE_INTERVAL_ENV_VAR = "UPDATE_INTERVAL"
PARSER_ENV_VAR = "PARSER"
GIT_TIMEOUT_ENV_VAR = "GIT_TIMEOUT"

# "*/30 * * * *" -> every 30 minutes
_MINUTE_STEP_CRON = re.compile(r"^\*/(\d+)(\s+\*){4}$")


class RepoConfig(BaseModel):
    """
    Where the upstream repository lives, where it is mirrored, and how its
    manifests are parsed.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        default="https://github.com/microsoft/winget-pkgs.git",
        description="Remote git URL of the manifest repository.",
    )
    local_path: str = Field(
        default="./repos/winget-pkgs",
        description="Directory holding the local checkout.",
    )
    manifest_path: str = Field(
        default="manifests",
        description="Subdirectory of the checkout that contains manifest files.",
    )
    update_interval: str = Field(
        default="*/30 * * * *",
        description="Refresh interval: seconds ('1800') or a minute-step cron ('*/30 * * * *').",
    )
    parser: str = Field(
        default="winget",
        description="Manifest format name used to select a parser.",
    )
    git_timeout_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Upper bound for a single git clone/pull/diff command.",
    )

    @property
    def refresh_interval_seconds(self) -> int:
        return parse_refresh_interval(self.update_interval)

    @property
    def manifest_dir(self) -> str:
        """
        ``manifest_path`` normalized to a checkout-relative POSIX path.

        "." means the whole checkout.
        """
        return posixpath.normpath(self.manifest_path.replace("\\", "/").strip("/") or ".")


class ServerConfig(BaseModel):
    """HTTP server settings and query limits."""

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_search_results: int = Field(default=100, ge=1)
    default_search_limit: int = Field(default=20, ge=1)


def parse_refresh_interval(expression: str) -> int:
    """
    Convert a refresh interval expression into seconds.

    Accepts a positive integer number of seconds or the minute-step cron form
    ``*/N * * * *``. Anything else raises ConfigurationError.
    """
    value = (expression or "").strip()
    if value.isdigit() and int(value) > 0:
        return int(value)

    match = _MINUTE_STEP_CRON.match(value)
    if match and int(match.group(1)) > 0:
        return int(match.group(1)) * 60

    raise ConfigurationError(f"Unsupported update interval expression: {expression!r}")


def load_repo_config(environ: Optional[dict] = None) -> RepoConfig:
    """Build the repository configuration from environment variables."""
    env = os.environ if environ is None else environ
    defaults = RepoConfig()

    try:
        git_timeout = float(env.get(GIT_TIMEOUT_ENV_VAR, defaults.git_timeout_seconds))
    except ValueError as e:
        raise ConfigurationError(f"Invalid {GIT_TIMEOUT_ENV_VAR}: {e}") from e

    try:
        config = RepoConfig(
            url=env.get(REPO_URL_ENV_VAR) or defaults.url,
            local_path=env.get(LOCAL_PATH_ENV_VAR) or defaults.local_path,
            manifest_path=env.get(MANIFESTS_PATH_ENV_VAR) or defaults.manifest_path,
            update_interval=env.get(UPDATE_INTERVAL_ENV_VAR) or defaults.update_interval,
            parser=env.get(PARSER_ENV_VAR) or defaults.parser,
            git_timeout_seconds=git_timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid repository configuration: {e}") from e

    # Fail at startup rather than on the first scheduled tick.
    parse_refresh_interval(config.update_interval)
    return config


def load_server_config(environ: Optional[dict] = None) -> ServerConfig:
    """Build the server configuration from environment variables."""
    env = os.environ if environ is None else environ
    defaults = ServerConfig()

    origins = env.get("CORS_ORIGINS")
    try:
        port = int(env.get("PORT", defaults.port))
    except ValueError as e:
        raise ConfigurationError(f"Invalid PORT: {e}") from e

    return ServerConfig(
        host=env.get("HOST") or defaults.host,
        port=port,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins,
    )
