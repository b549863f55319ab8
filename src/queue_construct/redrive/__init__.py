"""
Package: redrive
Description: Dead letter queue commands.

Provides the redrive loop moving failed messages back to their source
queue, the batch reconciler it relies on, and the purge command.
"""

from .loop import DLQRedriver, retry_failed_messages
from .purge import purge_dead_letter_queue
from .reconciler import reconcile_delete, reconcile_send

__all__ = [
    "DLQRedriver",
    "purge_dead_letter_queue",
    "reconcile_delete",
    "reconcile_send",
    "retry_failed_messages",
]
