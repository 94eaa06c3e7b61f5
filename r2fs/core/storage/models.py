"""
Data models for the virtual namespace.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

DIRECTORY_CONTENT_TYPE = "application/x-directory"


class EntryKind(str, Enum):
    """Kind of a projected entry."""
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class ObjectRecord:
    """
    One object as returned by the gateway listing.

    Attributes:
        key: Object key (unique in the store)
        size: Size in bytes
        content_type: Stored content type
        uploaded_at: Upload timestamp
    """
    key: str
    size: int = 0
    content_type: str = ""
    uploaded_at: Optional[datetime] = None

    @property
    def is_directory_marker(self) -> bool:
        """Returns True for keys ending in "/" (folder marker objects)."""
        return self.key.endswith("/")


@dataclass(frozen=True)
class NamespaceEntry:
    """
    User-facing item visible at a cursor.

    Attributes:
        display_name: Name without any separator
        kind: File or folder
        key: Full object key (files) or folder prefix ending in "/" (folders)
        size: Size in bytes (files only)
        modified: Upload timestamp (files only)
        content_type: Content type (files only)
    """
    display_name: str
    kind: EntryKind
    key: str
    size: Optional[int] = None
    modified: Optional[datetime] = None
    content_type: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE
