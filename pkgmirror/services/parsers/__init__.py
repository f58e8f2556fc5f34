"""
Manifest parsers, selected by format name.
"""
from typing import Dict, Type

from pkgmirror.domain.errors import ConfigurationError
from pkgmirror.services.parsers.base import ManifestParser
from pkgmirror.services.parsers.winget import WingetParser

PARSERS: Dict[str, Type[ManifestParser]] = {
    "winget": WingetParser,
}


def create_parser(format_name: str) -> ManifestParser:
    """Instantiate the parser registered for ``format_name``."""
    parser_cls = PARSERS.get(format_name)
    if parser_cls is None:
        supported = ", ".join(sorted(PARSERS))
        raise ConfigurationError(f"Unsupported parser type: {format_name} (supported: {supported})")
    return parser_cls()


__all__ = ["ManifestParser", "WingetParser", "PARSERS", "create_parser"]
