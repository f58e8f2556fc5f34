from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Optional, Tuple

from pkgmirror.domain.models import PackageRecord


class ManifestParser(ABC):
    """
    Abstract base class for manifest formats.

    A parser turns one manifest file into a PackageRecord, or returns None when
    the file is not a package manifest or cannot be understood. Implementations
    must not raise for malformed content.
    """

    # File extensions that denote the structured-data format in use.
    extensions: Tuple[str, ...] = (".yaml", ".yml")

    @abstractmethod
    def parse_manifest(self, file_path: str, content: str) -> Optional[PackageRecord]:
        """Parse one manifest; None means skip."""
        pass

    def is_valid_package_file(self, file_path: str) -> bool:
        """Whether ``file_path`` is eligible for parsing at all."""
        return PurePosixPath(file_path).suffix.lower() in self.extensions
