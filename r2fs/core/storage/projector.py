"""
Namespace projection.

Derives the entries visible at a cursor from the flat object listing.
Nothing is cached: every listing is projected from scratch.
"""
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..exceptions import MalformedRecordError
from ..logging import get_logger
from ..path import Cursor, as_prefix, first_segment, has_empty_segment, relative_to
from .models import EntryKind, NamespaceEntry, ObjectRecord

logger = get_logger('r2fs.storage.projector')


class NamespaceProjector:
    """
    Projects flat object records onto a folder view.

    Folders appear when any key has further segments below the cursor,
    whether or not a directory marker object exists for them.

    Example:
        >>> projector = NamespaceProjector()
        >>> entries = projector.project(records, "docs/")
    """

    def __init__(self, on_malformed: Optional[Callable[[MalformedRecordError], None]] = None):
        """
        Initialize projector.

        Args:
            on_malformed: Optional diagnostic sink for skipped records
        """
        self._on_malformed = on_malformed

    def project(
        self,
        records: Iterable[ObjectRecord],
        cursor: Union[str, Cursor] = ""
    ) -> List[NamespaceEntry]:
        """
        Build the entries visible at `cursor`.

        Args:
            records: Full object listing
            cursor: Current folder

        Returns:
            Entries in first-seen order (callers sort as they need)
        """
        entries: Dict[str, NamespaceEntry] = {}

        for record in records:
            if has_empty_segment(record.key):
                self._report(MalformedRecordError(record.key, "empty path segment"))
                continue

            relative = relative_to(cursor, record.key)
            if relative is None:
                continue

            segment, is_file = first_segment(relative)
            if is_file:
                entry = NamespaceEntry(
                    display_name=segment,
                    kind=EntryKind.FILE,
                    key=record.key,
                    size=record.size,
                    modified=record.uploaded_at,
                    content_type=record.content_type or None
                )
            else:
                entry = NamespaceEntry(
                    display_name=segment[:-1],
                    kind=EntryKind.FOLDER,
                    key=f"{as_prefix(cursor)}{segment}"
                )

            existing = entries.get(entry.display_name)
            if existing is not None and existing.is_folder and entry.is_file:
                logger.debug(f"Folder {existing.key!r} shadows file {entry.key!r}")
                continue
            entries[entry.display_name] = entry

        return list(entries.values())

    def _report(self, error: MalformedRecordError) -> None:
        logger.warning(f"Skipping record: {error}")
        if self._on_malformed:
            try:
                self._on_malformed(error)
            except Exception as e:
                logger.warning(f"Malformed-record handler failed: {e}")


def project(
    records: Iterable[ObjectRecord],
    cursor: Union[str, Cursor] = ""
) -> List[NamespaceEntry]:
    """Shortcut for NamespaceProjector().project(records, cursor)."""
    return NamespaceProjector().project(records, cursor)
