"""
Module: loop.py
Description: Redrive messages from a dead letter queue to its source queue.

Repeats receive -> resend -> delete against one (source, DLQ) pair until
a receive returns no message. A message is deleted from the DLQ only
after the source queue confirmed it; anything else stays in the DLQ for
a later run. Delivery is at-least-once: a message resent but not deleted
will be resent again by the next run.

Iterations are strictly sequential. Service errors are not retried:
they abort the loop with RedriveAbortedError, as do inconsistent batch
responses, keeping what was already migrated.
"""

from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from queue_construct.errors import BatchInconsistencyError, RedriveAbortedError
from queue_construct.models.message import DeleteOutcome, RedriveStats
from queue_construct.redrive.reconciler import reconcile_delete, reconcile_send
from queue_construct.sqs_queue.sqs import SQSClient
from queue_construct.utils.batch_helpers import SQS_MAX_BATCH_SIZE
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)


class DLQRedriver:
    """
    Move dead letter messages back onto their source queue.

    Attributes:
        sqs_client: SQSClient used for every queue call
        queue_url: URL of the source queue
        dlq_url: URL of the dead letter queue
        receive_batch_size: Messages fetched per receive (1-10)
        visibility_timeout: Hidden interval applied to received DLQ messages
        wait_time_seconds: Receive wait, 0 for a short poll

    Example:
        >>> redriver = DLQRedriver(SQSClient(), queue_url, dlq_url)
        >>> stats = redriver.retry()
        >>> stats.migrated
        42
    """

    def __init__(
        self,
        sqs_client: SQSClient,
        queue_url: str,
        dlq_url: str,
        receive_batch_size: int = SQS_MAX_BATCH_SIZE,
        visibility_timeout: Optional[int] = None,
        wait_time_seconds: int = 0
    ):
        if not queue_url or not isinstance(queue_url, str):
            raise ValueError("queue_url must be a non-empty string")
        if not dlq_url or not isinstance(dlq_url, str):
            raise ValueError("dlq_url must be a non-empty string")
        if not 1 <= receive_batch_size <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"receive_batch_size must be between 1 and {SQS_MAX_BATCH_SIZE}")

        self.sqs_client = sqs_client
        self.queue_url = queue_url
        self.dlq_url = dlq_url
        self.receive_batch_size = receive_batch_size
        self.visibility_timeout = visibility_timeout
        self.wait_time_seconds = wait_time_seconds

    def retry(self) -> RedriveStats:
        """
        Drain the dead letter queue into the source queue.

        Returns:
            RedriveStats of the run

        Raises:
            RedriveAbortedError: If a receive, send or delete call failed,
                or a batch response was inconsistent
        """
        stats = RedriveStats()

        logger.info(
            "Starting DLQ redrive",
            queue_url=self.queue_url,
            dlq_url=self.dlq_url,
            receive_batch_size=self.receive_batch_size
        )

        try:
            while self._redrive_batch(stats):
                pass
        except (ClientError, BotoCoreError, BatchInconsistencyError) as e:
            logger.error(
                "DLQ redrive aborted",
                error=str(e),
                error_type=type(e).__name__,
                **stats.as_dict()
            )
            raise RedriveAbortedError(
                f"Redrive aborted after migrating {stats.migrated} message(s): {e}",
                stats,
            ) from e

        logger.info("DLQ redrive finished, dead letter queue is empty", **stats.as_dict())
        return stats

    def _redrive_batch(self, stats: RedriveStats) -> bool:
        """
        Run one receive -> resend -> delete iteration.

        Returns:
            False once the dead letter queue returned no message
        """
        messages = self.sqs_client.receive_message_batch(
            self.dlq_url,
            max_messages=self.receive_batch_size,
            wait_time_seconds=self.wait_time_seconds,
            visibility_timeout=self.visibility_timeout,
        )
        if not messages:
            return False

        send_result = self.sqs_client.send_message_batch(
            self.queue_url,
            [message.to_send_entry() for message in messages],
        )
        batch = reconcile_send(messages, send_result)

        for failure in batch.failed:
            logger.warning(
                "Message could not be resent, leaving it in the DLQ",
                message_id=failure.id,
                error_code=failure.code,
                error_message=failure.message
            )

        deletion = DeleteOutcome()
        if batch.resent:
            delete_entries = [message.to_delete_entry() for message in batch.resent]
            delete_result = self.sqs_client.delete_message_batch(self.dlq_url, delete_entries)
            deletion = reconcile_delete(delete_entries, delete_result)

        for failure in deletion.failed:
            logger.warning(
                "Resent message could not be deleted from the DLQ, it will be resent again",
                message_id=failure.id,
                error_code=failure.code,
                error_message=failure.message
            )

        stats.record(batch, deletion)
        logger.info(
            "Message batch redriven",
            received=len(messages),
            resent=len(batch.resent),
            deleted=len(deletion.deleted),
            total_migrated=stats.migrated
        )
        return True


def retry_failed_messages(
    sqs_client: SQSClient,
    queue_url: str,
    dlq_url: str,
    receive_batch_size: int = SQS_MAX_BATCH_SIZE,
    visibility_timeout: Optional[int] = None,
    wait_time_seconds: int = 0
) -> RedriveStats:
    """Redrive every message of `dlq_url` to `queue_url`."""
    return DLQRedriver(
        sqs_client,
        queue_url,
        dlq_url,
        receive_batch_size=receive_batch_size,
        visibility_timeout=visibility_timeout,
        wait_time_seconds=wait_time_seconds,
    ).retry()
