"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models of the queue construct:
- QueueConfig / WorkerConfig: validated construct configuration
- DeadLetterMessage: message received from a dead letter queue
- BatchOutcome / DeleteOutcome: partitioned batch results
- RedriveStats: counters of a redrive invocation
"""

from .message import (
    BatchOutcome,
    DeadLetterMessage,
    DeleteOutcome,
    FailedEntry,
    RedriveStats,
)
from .queue import QueueConfig, WorkerConfig

__all__ = [
    "BatchOutcome",
    "DeadLetterMessage",
    "DeleteOutcome",
    "FailedEntry",
    "QueueConfig",
    "RedriveStats",
    "WorkerConfig",
]
