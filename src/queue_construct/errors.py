"""
Module: errors.py
Description: Exception hierarchy for the queue construct.

Partial batch failures are not exceptions: they are carried in
BatchOutcome / DeleteOutcome. The errors below abort a command.
"""


class QueueConstructError(Exception):
    """Base exception for queue construct errors."""


class ConfigurationError(QueueConstructError):
    """Invalid construct configuration, unknown construct type or command."""


class ResolutionError(QueueConstructError):
    """Deployed queue identifier could not be resolved (stack or output missing)."""


class BatchInconsistencyError(QueueConstructError):
    """A batch response broke the queue service's identifier contract."""


class RedriveAbortedError(QueueConstructError):
    """
    A service error or an inconsistent batch response aborted the redrive loop.

    Messages already resent and deleted stay migrated; everything else
    remains in the dead letter queue. The underlying error is available
    as __cause__.

    Attributes:
        stats: RedriveStats accumulated before the abort
    """

    def __init__(self, message: str, stats):
        super().__init__(message)
        self.stats = stats
