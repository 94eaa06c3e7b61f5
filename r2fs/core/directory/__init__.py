"""Folder upload: local handles, planning and execution."""
from .local import LocalDirectory, LocalFile, DirectoryHandle, FileHandle, DirectoryReader
from .planner import DirectoryUploadPlanner, CreateFolder, UploadFile, Operation
from .executor import DirectoryUploadExecutor, DirectoryUploadResult, OperationFailure

__all__ = [
    'LocalDirectory',
    'LocalFile',
    'DirectoryHandle',
    'FileHandle',
    'DirectoryReader',
    'DirectoryUploadPlanner',
    'CreateFolder',
    'UploadFile',
    'Operation',
    'DirectoryUploadExecutor',
    'DirectoryUploadResult',
    'OperationFailure',
]
