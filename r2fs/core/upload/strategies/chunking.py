"""
Chunking strategies for multipart uploads.

Implements Strategy Pattern for different partitioning algorithms.
"""
from abc import ABC, abstractmethod
from typing import List

from ..models import PartInfo


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def calculate_parts(self, file_size: int) -> List[PartInfo]:
        """Calculate part boundaries."""
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size partitioning.

    Every part has `part_size` bytes except the last, which may be
    smaller. Part numbers are 1-based and contiguous, so a payload of
    size S yields ceil(S / part_size) parts.
    """

    DEFAULT_PART_SIZE = 5 * 1024 * 1024  # 5MB

    def __init__(self, part_size: int = DEFAULT_PART_SIZE):
        """
        Initialize with part size.

        Args:
            part_size: Size of each part in bytes
        """
        if part_size <= 0:
            raise ValueError("Part size must be positive")
        self.part_size = part_size

    def calculate_parts(self, file_size: int) -> List[PartInfo]:
        """
        Calculate fixed-size part boundaries.

        Args:
            file_size: Total payload size in bytes

        Returns:
            Parts in ascending part-number order
        """
        if file_size <= 0:
            return []

        parts = []
        position = 0
        number = 1

        while position < file_size:
            end = min(position + self.part_size, file_size)
            parts.append(PartInfo(number=number, start=position, end=end))
            position = end
            number += 1

        return parts
