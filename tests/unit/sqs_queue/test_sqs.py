"""
Module: test_sqs.py
Description: Unit tests for SQS client batch operations.

Runs against moto-mocked queues; error handling is tested by patching
the underlying boto3 client.
"""

from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from queue_construct.errors import BatchInconsistencyError
from queue_construct.redrive.loop import retry_failed_messages
from queue_construct.sqs_queue.sqs import SQSClient


def _attributes(value):
    return {"origin": {"StringValue": value, "DataType": "String"}}


class TestSQSClient:
    """Test cases for SQSClient."""

    def test_receive_returns_messages(self, sqs_resources):
        client, _, dlq_url = sqs_resources
        client.send_message(QueueUrl=dlq_url, MessageBody="dead", MessageAttributes=_attributes("a"))

        messages = SQSClient(client=client).receive_message_batch(dlq_url)

        assert len(messages) == 1
        assert messages[0].body == "dead"
        assert messages[0].receipt_handle
        assert messages[0].message_attributes["origin"]["StringValue"] == "a"

    def test_receive_empty_queue(self, sqs_resources):
        client, _, dlq_url = sqs_resources

        assert SQSClient(client=client).receive_message_batch(dlq_url) == []

    def test_receive_respects_max_messages(self, sqs_resources):
        client, _, dlq_url = sqs_resources
        for i in range(5):
            client.send_message(QueueUrl=dlq_url, MessageBody=f"dead {i}")

        messages = SQSClient(client=client).receive_message_batch(dlq_url, max_messages=2)

        assert len(messages) <= 2

    @pytest.mark.parametrize("max_messages", [0, 11])
    def test_receive_invalid_max_messages(self, boto_sqs_mock, max_messages):
        with pytest.raises(ValueError, match="max_messages"):
            SQSClient(client=boto_sqs_mock).receive_message_batch("dlq-url", max_messages=max_messages)

    def test_receive_passes_visibility_timeout(self, boto_sqs_mock):
        boto_sqs_mock.receive_message.return_value = {}

        SQSClient(client=boto_sqs_mock).receive_message_batch("dlq-url", max_messages=10, visibility_timeout=30)

        boto_sqs_mock.receive_message.assert_called_once_with(
            QueueUrl="dlq-url",
            MaxNumberOfMessages=10,
            WaitTimeSeconds=0,
            AttributeNames=["All"],
            MessageAttributeNames=["All"],
            VisibilityTimeout=30,
        )

    def test_receive_malformed_entry(self, boto_sqs_mock):
        boto_sqs_mock.receive_message.return_value = {"Messages": [{"MessageId": "abcd", "Body": "x"}]}

        with pytest.raises(BatchInconsistencyError, match="ReceiptHandle"):
            SQSClient(client=boto_sqs_mock).receive_message_batch("dlq-url")

    def test_send_batch(self, sqs_resources):
        client, queue_url, _ = sqs_resources

        result = SQSClient(client=client).send_message_batch(queue_url, [
            {"Id": "a", "MessageBody": "first", "MessageAttributes": {}},
            {"Id": "b", "MessageBody": "second", "MessageAttributes": _attributes("b")},
        ])

        assert sorted(entry["Id"] for entry in result["Successful"]) == ["a", "b"]
        assert result["Failed"] == []

    def test_send_empty_batch_rejected(self, boto_sqs_mock):
        with pytest.raises(ValueError, match="batch cannot be empty"):
            SQSClient(client=boto_sqs_mock).send_message_batch("queue-url", [])
        boto_sqs_mock.send_message_batch.assert_not_called()

    def test_send_oversized_batch_rejected(self, boto_sqs_mock):
        entries = [{"Id": str(i), "MessageBody": "x", "MessageAttributes": {}} for i in range(11)]

        with pytest.raises(ValueError, match="cannot exceed 10"):
            SQSClient(client=boto_sqs_mock).send_message_batch("queue-url", entries)

    def test_send_error_propagates(self, boto_sqs_mock):
        client = SQSClient(client=boto_sqs_mock)
        with patch.object(client.client, 'send_message_batch', side_effect=ClientError(
            error_response={'Error': {'Code': 'AWS.SimpleQueueService.NonExistentQueue', 'Message': 'Test error'}},
            operation_name='SendMessageBatch'
        )):
            with pytest.raises(ClientError):
                client.send_message_batch("queue-url", [{"Id": "a", "MessageBody": "x", "MessageAttributes": {}}])

    def test_delete_batch(self, sqs_resources):
        client, _, dlq_url = sqs_resources
        client.send_message(QueueUrl=dlq_url, MessageBody="dead")
        sqs = SQSClient(client=client)
        message = sqs.receive_message_batch(dlq_url)[0]

        result = sqs.delete_message_batch(dlq_url, [message.to_delete_entry()])

        assert result["Successful"] == [{"Id": message.message_id}]

    def test_delete_empty_batch_rejected(self, boto_sqs_mock):
        with pytest.raises(ValueError):
            SQSClient(client=boto_sqs_mock).delete_message_batch("dlq-url", [])


class TestRedriveOnMockedQueues:
    """End-to-end redrive against moto queues."""

    @pytest.mark.parametrize("batch_size", [1, 3, 10])
    def test_dlq_drained_into_queue(self, sqs_resources, batch_size):
        client, queue_url, dlq_url = sqs_resources
        for i in range(12):
            client.send_message(QueueUrl=dlq_url, MessageBody=f"dead {i}", MessageAttributes=_attributes(str(i)))

        stats = retry_failed_messages(
            SQSClient(client=client), queue_url, dlq_url, receive_batch_size=batch_size
        )

        moved = []
        while True:
            response = client.receive_message(
                QueueUrl=queue_url, MaxNumberOfMessages=10, MessageAttributeNames=["All"]
            )
            if not response.get("Messages"):
                break
            moved.extend(response["Messages"])

        assert stats.migrated == 12
        assert sorted(m["Body"] for m in moved) == sorted(f"dead {i}" for i in range(12))
        for message in moved:
            assert message["MessageAttributes"]["origin"]["StringValue"] == message["Body"].split()[1]
        remaining = client.get_queue_attributes(
            QueueUrl=dlq_url, AttributeNames=["ApproximateNumberOfMessages", "ApproximateNumberOfMessagesNotVisible"]
        )["Attributes"]
        assert remaining["ApproximateNumberOfMessages"] == "0"
        assert remaining["ApproximateNumberOfMessagesNotVisible"] == "0"
