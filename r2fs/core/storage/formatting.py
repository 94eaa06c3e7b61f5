"""Display helpers for projected entries."""
import math
from typing import Iterable, List

from .models import NamespaceEntry

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']


def format_file_size(size: int) -> str:
    """
    Format a byte count for display (base 1024, two decimals).

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
    """
    if size <= 0:
        return "0 B"
    exponent = min(int(math.log(size, 1024)), len(SIZE_UNITS) - 1)
    # float log can land just below an exact power
    if exponent + 1 < len(SIZE_UNITS) and size >= 1024 ** (exponent + 1):
        exponent += 1
    return f"{size / 1024 ** exponent:.2f} {SIZE_UNITS[exponent]}"


def file_category(content_type: str = "") -> str:
    """Coarse category used for icons: image, document, archive or other."""
    content_type = content_type or ""
    if content_type.startswith('image/'):
        return 'image'
    if 'text/' in content_type or 'document' in content_type:
        return 'document'
    if any(kind in content_type for kind in ('zip', 'tar', 'rar')):
        return 'archive'
    return 'other'


def filter_entries(entries: Iterable[NamespaceEntry], query: str) -> List[NamespaceEntry]:
    """Entries whose name contains `query`, case-insensitively."""
    needle = query.lower()
    return [e for e in entries if needle in e.display_name.lower()]


def sort_entries(
    entries: Iterable[NamespaceEntry],
    by: str = 'name',
    reverse: bool = False,
    folders_first: bool = False
) -> List[NamespaceEntry]:
    """
    Sort entries for display.

    Args:
        entries: Projected entries
        by: 'name', 'size' or 'modified'
        reverse: Descending order
        folders_first: Group folders before files (order inside groups kept)

    Returns:
        New sorted list
    """
    if by == 'name':
        key = lambda e: e.display_name.lower()
    elif by == 'size':
        key = lambda e: e.size or 0
    elif by == 'modified':
        key = lambda e: e.modified.timestamp() if e.modified else 0.0
    else:
        raise ValueError(f"Unknown sort field: {by}")

    ordered = sorted(entries, key=key, reverse=reverse)
    if folders_first:
        ordered.sort(key=lambda e: 0 if e.is_folder else 1)
    return ordered
