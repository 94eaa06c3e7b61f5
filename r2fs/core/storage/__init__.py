"""Virtual namespace over the flat object listing."""
from .models import ObjectRecord, NamespaceEntry, EntryKind, DIRECTORY_CONTENT_TYPE
from .projector import NamespaceProjector, project
from .formatting import format_file_size, file_category, filter_entries, sort_entries

__all__ = [
    'ObjectRecord',
    'NamespaceEntry',
    'EntryKind',
    'DIRECTORY_CONTENT_TYPE',
    'NamespaceProjector',
    'project',
    'format_file_size',
    'file_category',
    'filter_entries',
    'sort_entries',
]
