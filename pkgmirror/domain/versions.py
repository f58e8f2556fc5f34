from typing import Optional, Tuple


def version_key(version: Optional[str]) -> Tuple:
    """
    Sort key for package version strings.

    Numeric parts compare as numbers ("1.18.0" > "1.9.0"); non-numeric parts
    compare as text and sort after numeric parts at the same position.
    A missing version sorts before every real one.
    """
    if not version:
        return ()
    parts = []
    for part in version.replace("-", ".").split("."):
        try:
            parts.append((0, int(part)))
        except ValueError:
            parts.append((1, part))
    return tuple(parts)


def is_older(candidate: Optional[str], current: Optional[str]) -> bool:
    return version_key(candidate) < version_key(current)
