"""
Module: sqs.py
Description: SQS client for dead letter queue operations.

Thin wrapper over the boto3 SQS batch APIs used by the redrive loop and
the purge command. Each batch call is bounded by the service maximum of
10 entries and returns the raw per-entry Successful / Failed partition.
Service errors are logged and re-raised, never retried here.
"""

from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from queue_construct.models.message import DeadLetterMessage
from queue_construct.utils.batch_helpers import SQS_MAX_BATCH_SIZE, validate_batch_size
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)


class SQSClient:
    """
    SQS client for batch queue operations.

    Provides receive, send, delete and purge calls against queues
    identified by their URL.
    """

    def __init__(self, region_name: Optional[str] = None, client: Any = None):
        """
        Initialize SQS client.

        Args:
            region_name: AWS region of the queues (boto3 default if omitted)
            client: Pre-built boto3 SQS client (tests, custom sessions)
        """
        self.client = client or boto3.client('sqs', region_name=region_name)

        logger.debug(
            "SQS client initialized",
            region=self.client.meta.region_name
        )

    def receive_message_batch(
        self,
        queue_url: str,
        max_messages: int = SQS_MAX_BATCH_SIZE,
        wait_time_seconds: int = 0,
        visibility_timeout: Optional[int] = None
    ) -> List[DeadLetterMessage]:
        """
        Receive up to `max_messages` messages from a queue.

        Args:
            queue_url: URL of the queue to read from
            max_messages: Maximum number of messages (1-10)
            wait_time_seconds: Long-poll wait, 0 for a short poll
            visibility_timeout: Seconds received messages stay hidden
                (queue default if omitted)

        Returns:
            Received messages, empty when none are currently visible

        Raises:
            ClientError: If SQS operation fails
            ValueError: If max_messages is out of range
        """
        if not 1 <= max_messages <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"max_messages must be between 1 and {SQS_MAX_BATCH_SIZE}")

        params = {
            'QueueUrl': queue_url,
            'MaxNumberOfMessages': max_messages,
            'WaitTimeSeconds': wait_time_seconds,
            'AttributeNames': ['All'],
            'MessageAttributeNames': ['All'],
        }
        if visibility_timeout is not None:
            params['VisibilityTimeout'] = visibility_timeout

        try:
            response = self.client.receive_message(**params)
        except ClientError as e:
            logger.error(
                "Failed to receive messages from SQS",
                queue_url=queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        messages = [DeadLetterMessage.from_sqs(raw) for raw in response.get('Messages', [])]

        logger.debug(
            "Messages received from SQS",
            queue_url=queue_url,
            count=len(messages)
        )

        return messages

    def send_message_batch(self, queue_url: str, entries: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send a batch of messages to a queue.

        Args:
            queue_url: URL of the destination queue
            entries: SendMessageBatch entries ({Id, MessageBody, MessageAttributes})

        Returns:
            Raw response with 'Successful' and 'Failed' entry lists

        Raises:
            ClientError: If SQS operation fails
            ValueError: If the batch is empty or too large
        """
        validate_batch_size(entries, SQS_MAX_BATCH_SIZE)

        try:
            response = self.client.send_message_batch(QueueUrl=queue_url, Entries=entries)
        except ClientError as e:
            logger.error(
                "Failed to send message batch to SQS",
                queue_url=queue_url,
                count=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return {
            'Successful': response.get('Successful', []),
            'Failed': response.get('Failed', []),
        }

    def delete_message_batch(self, queue_url: str, entries: List[Dict[str, str]]) -> Dict[str, Any]:
        """
        Delete a batch of messages from a queue.

        Args:
            queue_url: URL of the queue holding the messages
            entries: DeleteMessageBatch entries ({Id, ReceiptHandle})

        Returns:
            Raw response with 'Successful' and 'Failed' entry lists

        Raises:
            ClientError: If SQS operation fails
            ValueError: If the batch is empty or too large
        """
        validate_batch_size(entries, SQS_MAX_BATCH_SIZE)

        try:
            response = self.client.delete_message_batch(QueueUrl=queue_url, Entries=entries)
        except ClientError as e:
            logger.error(
                "Failed to delete message batch from SQS",
                queue_url=queue_url,
                count=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return {
            'Successful': response.get('Successful', []),
            'Failed': response.get('Failed', []),
        }

    def purge_queue(self, queue_url: str) -> None:
        """
        Delete every message currently in a queue.

        Removal is asynchronous on the service side and cannot be undone.

        Raises:
            ClientError: If SQS operation fails (e.g. PurgeQueueInProgress)
        """
        try:
            self.client.purge_queue(QueueUrl=queue_url)
        except ClientError as e:
            logger.error(
                "Failed to purge SQS queue",
                queue_url=queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        logger.info("SQS queue purged", queue_url=queue_url)
