"""Utilities for turning image tags into comparable version keys and ranking them."""

import re
from functools import cmp_to_key
from typing import Iterable, Optional, Pattern, Sequence

from ..errors import NoMatchError


# First dotted numeric run in a tag, e.g. "1.29.0" in "v1.29.0-windows-ltsc2022".
# The leading 'v' is optional and not part of the captured version.
EMBEDDED_VERSION_PATTERN = re.compile(r"\b(?:v)?(\d+(?:\.\d+)+)(?=-|\b)")


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def compare_version_keys(v1: Sequence[int], v2: Sequence[int]) -> int:
    """Compare two numeric version keys position by position.

    Missing trailing positions count as 0, so (1, 2) and (1, 2, 0) are equal.

    Returns:
        -1, 0 or 1 depending on whether v1 is lower than, equal to or greater than v2
    """
    for i in range(max(len(v1), len(v2))):
        a = v1[i] if i < len(v1) else 0
        b = v2[i] if i < len(v2) else 0
        if a > b:
            return 1
        if a < b:
            return -1
    return 0


def is_version_greater(v1: Sequence[int], v2: Sequence[int]) -> bool:
    return compare_version_keys(v1, v2) > 0


def pattern_version_key(tag: str, pattern: Pattern[str]) -> Optional[tuple[int, ...]]:
    """Extract the numeric version key of a tag using a capture pattern.

    Args:
        tag: The image tag
        pattern: Compiled regex whose capture groups hold the version parts

    Returns:
        One integer per capture group, or None if the tag does not match.
        Captures that are not numbers (or did not participate) count as 0.
    """
    match = pattern.search(tag)
    if not match:
        return None
    return tuple(_to_int(group) for group in match.groups())


def rank_latest(tags: Iterable[str], pattern: Pattern[str], image: Optional[str] = None) -> str:
    """Pick the tag with the highest version key under a capture pattern.

    The first matching tag wins ties; a later tag only replaces the current
    best when its key is strictly greater.

    Args:
        tags: Tags of a single repository, in any order
        pattern: Compiled regex whose capture groups hold the version parts
        image: Image name used in the error message

    Returns:
        The winning tag

    Raises:
        NoMatchError: If no tag matches the pattern
    """
    latest_tag: Optional[str] = None
    latest_version: tuple[int, ...] = ()

    for tag in tags:
        version = pattern_version_key(tag, pattern)
        if version is None:
            continue
        if latest_tag is None or is_version_greater(version, latest_version):
            latest_tag = tag
            latest_version = version

    if latest_tag is None:
        raise NoMatchError(f"Unable to find matched tag for {image or pattern.pattern}")
    return latest_tag


def extract_version(tag: str) -> Optional[str]:
    """Return the first embedded dotted version of a tag (without any 'v'), or None."""
    match = EMBEDDED_VERSION_PATTERN.search(tag)
    return match.group(1) if match else None


def compare_versions(a: str, b: str) -> int:
    """Compare two dotted version strings such as '1.10.0' and '1.9'."""
    return compare_version_keys(
        [_to_int(part) for part in a.split(".")],
        [_to_int(part) for part in b.split(".")],
    )


def top_n(tags: Iterable[str], n: int) -> list[str]:
    """Return the n tags with the highest embedded versions, in ascending order.

    Tags without an embedded dotted version are dropped. Tags with equal
    versions keep their original relative order.

    Args:
        tags: Tags of a single repository
        n: How many tags to keep

    Returns:
        Up to n tags, lowest version first
    """
    if n <= 0:
        return []

    versioned = []
    for tag in tags:
        version = extract_version(tag)
        if version is not None:
            versioned.append((tag, version))

    versioned.sort(key=cmp_to_key(lambda x, y: compare_versions(x[1], y[1])))
    return [tag for tag, _ in versioned[-n:]]
