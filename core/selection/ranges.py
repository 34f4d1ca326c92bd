"""
Range helpers cho SelectionStore.

Functions:
- normalize_range(): Swap neu dao nguoc, floor tai 1
- ranges_mergeable(): Hai range overlap hoac cham nhau
- union_range(): Hop cua hai range mergeable
- clean_note(): Trim note, rong -> None
"""

from typing import Optional

from core.selection.types import LineRange


def normalize_range(range_: LineRange) -> LineRange:
    """
    Normalize line range ve dang (start, end) voi 1 <= start <= end.

    Args:
        range_: (start, end) co the dao nguoc hoac < 1

    Returns:
        Range da normalize
    """
    first, second = range_
    start = max(min(first, second), 1)
    end = max(first, second, 1)
    return (start, end)


def ranges_mergeable(a: LineRange, b: LineRange) -> bool:
    """Overlap hoac touch: (5, 10) va (11, 12) van merge duoc."""
    return a[0] <= b[1] + 1 and b[0] <= a[1] + 1


def union_range(a: LineRange, b: LineRange) -> LineRange:
    return (min(a[0], b[0]), max(a[1], b[1]))


def clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    trimmed = note.strip()
    return trimmed or None
