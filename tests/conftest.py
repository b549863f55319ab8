"""
Module: conftest.py
Description: Shared pytest fixtures for queue construct tests.

Provides test settings, sample messages, moto-backed SQS queues and an
in-memory queue service that can be told to fail individual batch
entries.
"""

import itertools
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws
from pydantic_settings import SettingsConfigDict

from queue_construct.config.settings import Settings
from queue_construct.construct import AwsProvider
from queue_construct.models.message import DeadLetterMessage
from queue_construct.sqs_queue.sqs import SQSClient
from queue_construct.stack.outputs import StackOutputResolver


class TestSettings(Settings):
    """Test settings that don't read environment files."""

    model_config = SettingsConfigDict(
        env_file=None,  # Disable .env file loading for tests
        case_sensitive=False,
        extra="ignore"
    )


@pytest.fixture
def test_settings():
    """Provide test configuration settings."""
    return TestSettings(service_name="test-queues", stage="dev", log_level="DEBUG")


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def sqs_resources(aws_credentials):
    """
    Create a mocked queue / dead letter queue pair with moto.

    Yields:
        (boto3 SQS client, queue URL, DLQ URL)
    """
    with mock_aws():
        client = boto3.client("sqs", region_name="us-east-1")
        dlq_url = client.create_queue(QueueName="test-queues-dev-emails-dlq")["QueueUrl"]
        queue_url = client.create_queue(QueueName="test-queues-dev-emails")["QueueUrl"]
        yield client, queue_url, dlq_url


@pytest.fixture
def sample_raw_message():
    """ReceiveMessage entry as returned by boto3."""
    return {
        "MessageId": "abcd",
        "ReceiptHandle": "abcd-handle",
        "Body": "sample body",
        "Attributes": {},
        "MessageAttributes": {},
    }


@pytest.fixture
def sample_message(sample_raw_message):
    return DeadLetterMessage.from_sqs(sample_raw_message)


def make_message(index: int, **overrides) -> DeadLetterMessage:
    """Build a dead letter message numbered `index`."""
    fields = {
        "message_id": f"msg-{index}",
        "receipt_handle": f"msg-{index}-handle",
        "body": f"body {index}",
        "message_attributes": {},
    }
    fields.update(overrides)
    return DeadLetterMessage(**fields)


@pytest.fixture
def message_factory():
    return make_message


class InMemoryQueueService:
    """
    In-memory stand-in for SQSClient.

    Received messages become in flight and are not returned by later
    receives, like an SQS visibility timeout that outlasts the test.
    Entries whose id is listed in `fail_send_ids` / `fail_delete_ids`
    are reported in the 'Failed' part of the batch response.
    """

    def __init__(self):
        self.queues: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_send_ids = set()
        self.fail_delete_ids = set()
        self.calls: List[tuple] = []
        self._handles = itertools.count()

    def add_messages(self, queue_url: str, messages: List[Dict[str, Any]]) -> None:
        for message in messages:
            self.queues.setdefault(queue_url, []).append({**message, "in_flight": False, "handle": None})

    def messages(self, queue_url: str) -> List[Dict[str, Any]]:
        return self.queues.get(queue_url, [])

    def receive_message_batch(
        self,
        queue_url: str,
        max_messages: int = 10,
        wait_time_seconds: int = 0,
        visibility_timeout: Optional[int] = None
    ) -> List[DeadLetterMessage]:
        self.calls.append(("receive", queue_url, max_messages))
        visible = [m for m in self.messages(queue_url) if not m["in_flight"]][:max_messages]
        received = []
        for record in visible:
            record["in_flight"] = True
            record["handle"] = f"{record['id']}-handle-{next(self._handles)}"
            received.append(DeadLetterMessage(
                message_id=record["id"],
                receipt_handle=record["handle"],
                body=record["body"],
                message_attributes=record.get("attributes", {}),
            ))
        return received

    def send_message_batch(self, queue_url: str, entries: List[Dict[str, Any]]) -> Dict[str, Any]:
        self.calls.append(("send", queue_url, entries))
        successful, failed = [], []
        for entry in entries:
            if entry["Id"] in self.fail_send_ids:
                failed.append({"Id": entry["Id"], "Code": "InternalError", "Message": "boom", "SenderFault": False})
                continue
            self.add_messages(queue_url, [{
                "id": f"resent-{entry['Id']}",
                "body": entry["MessageBody"],
                "attributes": entry["MessageAttributes"],
            }])
            successful.append({"Id": entry["Id"], "MessageId": f"resent-{entry['Id']}", "MD5OfMessageBody": ""})
        return {"Successful": successful, "Failed": failed}

    def delete_message_batch(self, queue_url: str, entries: List[Dict[str, str]]) -> Dict[str, Any]:
        self.calls.append(("delete", queue_url, entries))
        successful, failed = [], []
        for entry in entries:
            if entry["Id"] in self.fail_delete_ids:
                failed.append({"Id": entry["Id"], "Code": "ReceiptHandleIsInvalid", "Message": "boom", "SenderFault": True})
                continue
            self.queues[queue_url] = [
                m for m in self.messages(queue_url) if m["handle"] != entry["ReceiptHandle"]
            ]
            successful.append({"Id": entry["Id"]})
        return {"Successful": successful, "Failed": failed}

    def purge_queue(self, queue_url: str) -> None:
        self.calls.append(("purge", queue_url))
        self.queues[queue_url] = []

    def expire_visibility(self, queue_url: str) -> None:
        """Make in-flight messages visible again."""
        for record in self.messages(queue_url):
            record["in_flight"] = False

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)


@pytest.fixture
def queue_service():
    return InMemoryQueueService()


@pytest.fixture
def mock_resolver():
    """Resolver returning 'queue-url' for the queue and 'dlq-url' for the DLQ."""
    resolver = MagicMock(spec=StackOutputResolver)
    resolver.resolve_queue_url.side_effect = lambda construct_id, role: {
        "Queue": "queue-url",
        "Dlq": "dlq-url",
    }[role]
    return resolver


@pytest.fixture
def boto_sqs_mock():
    """MagicMock standing in for a boto3 SQS client."""
    client = MagicMock()
    client.meta.region_name = "us-east-1"
    return client


@pytest.fixture
def provider(test_settings, boto_sqs_mock, mock_resolver):
    """AwsProvider wired to a mocked boto3 SQS client and resolver."""
    return AwsProvider(
        service_name=test_settings.service_name,
        stage=test_settings.stage,
        region=test_settings.aws_region,
        app_settings=test_settings,
        sqs_client=SQSClient(client=boto_sqs_mock),
        resolver=mock_resolver,
    )


@pytest.fixture
def emails_config():
    """Raw configuration of an 'emails' queue construct."""
    return {
        "type": "queue",
        "worker": {"handler": "worker.handler"},
    }
