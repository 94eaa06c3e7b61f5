"""
Hierarchical view over flat object keys.

Keys are plain strings; `/` is a naming convention, not structure. The
helpers here treat a key as a path relative to a browsing cursor.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

SEPARATOR = "/"


def as_prefix(cursor: Union[str, "Cursor"]) -> str:
    """
    Normalize a cursor to the key prefix it denotes.

    The root is "" and every other folder ends with exactly one "/".

    Args:
        cursor: Cursor object or "/"-joined folder path

    Returns:
        Key prefix for the folder
    """
    if isinstance(cursor, Cursor):
        return cursor.prefix
    path = cursor.strip(SEPARATOR)
    return f"{path}{SEPARATOR}" if path else ""


def join(cursor: Union[str, "Cursor"], name: str, folder: bool = False) -> str:
    """
    Build a key for `name` inside `cursor`.

    Args:
        cursor: Folder the name lives in
        name: File or folder name (a trailing "/" marks a folder)
        folder: Force folder form (trailing "/")

    Returns:
        Object key, with one separator between the parts

    Raises:
        ValueError: If name is empty or contains a separator
    """
    is_folder = folder or name.endswith(SEPARATOR)
    bare = name.strip(SEPARATOR)
    if not bare:
        raise ValueError("Name must not be empty")
    if SEPARATOR in bare:
        raise ValueError(f"Name must be a single path segment: {name!r}")
    key = f"{as_prefix(cursor)}{bare}"
    return f"{key}{SEPARATOR}" if is_folder else key


def relative_to(cursor: Union[str, "Cursor"], key: str) -> Optional[str]:
    """
    Return the part of `key` below `cursor`.

    The root cursor contains every key. The folder's own marker
    (key equal to the prefix) is not content of the folder.

    Args:
        cursor: Current folder
        key: Object key

    Returns:
        Remainder of the key, or None when not contained
    """
    prefix = as_prefix(cursor)
    if not key.startswith(prefix):
        return None
    remainder = key[len(prefix):]
    return remainder or None


def first_segment(relative: str) -> Tuple[str, bool]:
    """
    Split a relative key on its first separator.

    Args:
        relative: Key remainder below a cursor

    Returns:
        (segment, is_terminal_file). For files the segment is the file
        name; for folders it is the folder name including its trailing "/".
    """
    index = relative.find(SEPARATOR)
    if index == -1:
        return relative, True
    return relative[:index + 1], False


def has_empty_segment(key: str) -> bool:
    """True for keys with a leading, doubled or otherwise empty segment."""
    if not key:
        return True
    body = key[:-1] if key.endswith(SEPARATOR) else key
    return any(part == "" for part in body.split(SEPARATOR))


def basename(key: str) -> str:
    """Last segment of a key, without a trailing separator."""
    return key.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]


@dataclass(frozen=True)
class Cursor:
    """
    Current browsing position.

    Immutable; navigation returns a new cursor. Starts at the root and
    is never persisted.

    Example:
        >>> cursor = Cursor().enter("docs").enter("2024")
        >>> cursor.path
        'docs/2024'
        >>> cursor.prefix
        'docs/2024/'
        >>> cursor.up().path
        'docs'
    """
    parts: Tuple[str, ...] = ()

    @classmethod
    def from_path(cls, path: str) -> 'Cursor':
        """Parse a "/"-joined path; leading and trailing separators are ignored."""
        parts = tuple(p for p in path.strip(SEPARATOR).split(SEPARATOR) if p)
        return cls(parts)

    @property
    def path(self) -> str:
        return SEPARATOR.join(self.parts)

    @property
    def prefix(self) -> str:
        return f"{self.path}{SEPARATOR}" if self.parts else ""

    @property
    def name(self) -> str:
        return self.parts[-1] if self.parts else ""

    @property
    def is_root(self) -> bool:
        return not self.parts

    @property
    def depth(self) -> int:
        return len(self.parts)

    def enter(self, name: str) -> 'Cursor':
        """
        Descend into a child folder.

        Raises:
            ValueError: If name is empty or spans several segments
        """
        bare = name.strip(SEPARATOR)
        if not bare or SEPARATOR in bare:
            raise ValueError(f"Invalid folder name: {name!r}")
        return Cursor(self.parts + (bare,))

    def up(self) -> 'Cursor':
        """Parent folder; the root is its own parent."""
        return Cursor(self.parts[:-1])

    def truncate(self, depth: int) -> 'Cursor':
        """Jump to the ancestor at `depth` (breadcrumb navigation)."""
        if depth < 0 or depth > len(self.parts):
            raise ValueError(f"Depth {depth} out of range for {self}")
        return Cursor(self.parts[:depth])

    def breadcrumbs(self):
        """List of (name, cursor) pairs from the root down to this folder."""
        crumbs = [("", Cursor())]
        for depth in range(1, len(self.parts) + 1):
            crumbs.append((self.parts[depth - 1], Cursor(self.parts[:depth])))
        return crumbs

    def __truediv__(self, other: str) -> 'Cursor':
        if not isinstance(other, str):
            raise TypeError("Path component must be a string")
        return self.enter(other)

    def __str__(self) -> str:
        return f"/{self.path}"
