"""Upload services module."""
from .file_service import FileValidator, FileSource, BytesSource, guess_content_type

__all__ = [
    'FileValidator',
    'FileSource',
    'BytesSource',
    'guess_content_type',
]
