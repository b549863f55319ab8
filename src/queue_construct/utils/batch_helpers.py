"""
Module: batch_helpers.py
Description: Utility functions for SQS batch operations.

SQS batch calls (send, delete, receive) accept at most 10 entries.
validate_batch_size() keeps callers inside that bound.

Key Components:
- SQS_MAX_BATCH_SIZE: service limit for batch calls
- validate_batch_size(): Validate batch size constraints

Dependencies: typing
"""

from typing import Any, List

SQS_MAX_BATCH_SIZE = 10


def validate_batch_size(items: List[Any], max_size: int = SQS_MAX_BATCH_SIZE) -> None:
    """
    Validate that a batch is non-empty and doesn't exceed the maximum size.

    Args:
        items: List of items to validate
        max_size: Maximum allowed batch size

    Raises:
        ValueError: If batch is empty or its size exceeds maximum

    Example:
        >>> validate_batch_size([1, 2, 3], 5)  # OK
        >>> validate_batch_size([1, 2, 3], 2)  # Raises ValueError
    """
    if not isinstance(items, list):
        raise ValueError("items must be a list")
    if not items:
        raise ValueError("batch cannot be empty")
    if len(items) > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")
