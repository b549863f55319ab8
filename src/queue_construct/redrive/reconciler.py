"""
Module: reconciler.py
Description: Reconcile SQS batch responses with the submitted entries.

Batch responses are keyed by the caller-assigned entry Id, not by
position. Reconciliation is an explicit join on that Id, which also
recovers each resent message's receipt handle (the send response does
not carry it).
"""

from typing import Any, Dict, Iterable, List

from queue_construct.errors import BatchInconsistencyError
from queue_construct.models.message import (
    BatchOutcome,
    DeadLetterMessage,
    DeleteOutcome,
    FailedEntry,
)
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)

MISSING_FROM_RESPONSE = "MissingFromResponse"


def _index_unique(ids: Iterable[str], source: str) -> Dict[str, int]:
    index: Dict[str, int] = {}
    for position, entry_id in enumerate(ids):
        if entry_id in index:
            raise BatchInconsistencyError(f"Duplicate entry id {entry_id!r} in {source}")
        index[entry_id] = position
    return index


def _partition(original_ids: List[str], response: Dict[str, Any], operation: str):
    """
    Split original ids into succeeded ids and failures using the response.

    Returns:
        (set of succeeded ids, list of FailedEntry in original order)
    """
    originals = _index_unique(original_ids, f"{operation} request")
    successful = response.get('Successful') or []
    failed = response.get('Failed') or []

    reported = _index_unique(
        [entry['Id'] for entry in successful] + [entry['Id'] for entry in failed],
        f"{operation} response",
    )
    unknown = [entry_id for entry_id in reported if entry_id not in originals]
    if unknown:
        raise BatchInconsistencyError(
            f"{operation} response references ids that were not submitted: {unknown}"
        )

    succeeded_ids = {entry['Id'] for entry in successful}
    failures = {entry['Id']: FailedEntry.from_sqs(entry) for entry in failed}

    for entry_id in original_ids:
        if entry_id not in reported:
            logger.warning(
                "Batch entry missing from response, treating as failed",
                operation=operation,
                entry_id=entry_id
            )
            failures[entry_id] = FailedEntry(
                id=entry_id,
                code=MISSING_FROM_RESPONSE,
                message=f"Entry absent from the {operation} response",
            )

    ordered_failures = [failures[entry_id] for entry_id in original_ids if entry_id in failures]
    return succeeded_ids, ordered_failures


def reconcile_send(
    original_batch: List[DeadLetterMessage],
    send_result: Dict[str, Any]
) -> BatchOutcome:
    """
    Partition a resent batch into resent and failed messages.

    Args:
        original_batch: Messages submitted in the SendMessageBatch call
        send_result: Raw response with 'Successful' and 'Failed' entries

    Returns:
        BatchOutcome where each original message appears exactly once

    Raises:
        BatchInconsistencyError: If ids are duplicated or unknown
    """
    if not original_batch:
        return BatchOutcome()

    succeeded_ids, failures = _partition(
        [message.message_id for message in original_batch], send_result, "send"
    )
    resent = [message for message in original_batch if message.message_id in succeeded_ids]
    return BatchOutcome(resent=resent, failed=failures)


def reconcile_delete(
    original_entries: List[Dict[str, str]],
    delete_result: Dict[str, Any]
) -> DeleteOutcome:
    """
    Partition a delete batch into deleted and failed-to-delete entries.

    Args:
        original_entries: DeleteMessageBatch entries ({Id, ReceiptHandle})
        delete_result: Raw response with 'Successful' and 'Failed' entries

    Returns:
        DeleteOutcome keyed by entry id

    Raises:
        BatchInconsistencyError: If ids are duplicated or unknown
    """
    if not original_entries:
        return DeleteOutcome()

    original_ids = [entry['Id'] for entry in original_entries]
    succeeded_ids, failures = _partition(original_ids, delete_result, "delete")
    deleted = [entry_id for entry_id in original_ids if entry_id in succeeded_ids]
    return DeleteOutcome(deleted=deleted, failed=failures)
