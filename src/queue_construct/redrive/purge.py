"""
Module: purge.py
Description: Discard every message of a dead letter queue.
"""

from queue_construct.sqs_queue.sqs import SQSClient
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)


def purge_dead_letter_queue(sqs_client: SQSClient, dlq_url: str) -> None:
    """
    Purge the dead letter queue with a single PurgeQueue call.

    Removal is performed asynchronously by SQS and cannot be undone.
    No message count is reported.

    Raises:
        ClientError: If the purge call fails
    """
    if not dlq_url or not isinstance(dlq_url, str):
        raise ValueError("dlq_url must be a non-empty string")

    logger.info("Purging dead letter queue", dlq_url=dlq_url)
    sqs_client.purge_queue(dlq_url)
