"""
Module: message.py
Description: Transient models for one dead letter queue redrive.

Everything here lives for the duration of a single redrive invocation.
Nothing is cached or persisted.

Key Components:
- DeadLetterMessage: Message received from the DLQ
- FailedEntry: Per-entry failure reported by a batch call
- BatchOutcome: Send batch partitioned into resent / failed
- DeleteOutcome: Delete batch partitioned into deleted / failed
- RedriveStats: Counters reported to the operator

Dependencies: pydantic, typing
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from queue_construct.errors import BatchInconsistencyError


class DeadLetterMessage(BaseModel):
    """
    One message fetched from the dead letter queue.

    Body and message attributes are opaque and reproduced verbatim when
    the message is resent. The receipt handle is single-use and is only
    needed to delete this delivery from the DLQ.

    Attributes:
        message_id: SQS message identifier
        receipt_handle: Proof of this delivery, required for deletion
        body: Message payload
        message_attributes: User message attributes
        attributes: System attributes (ApproximateReceiveCount, ...)
    """

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., min_length=1)
    receipt_handle: str = Field(..., min_length=1)
    body: str
    message_attributes: Dict[str, Any] = Field(default_factory=dict)
    attributes: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_sqs(cls, raw: Dict[str, Any]) -> "DeadLetterMessage":
        """
        Build a message from a ReceiveMessage response entry.

        Raises:
            BatchInconsistencyError: If the entry lacks its id, receipt handle or body
        """
        missing = [key for key in ("MessageId", "ReceiptHandle", "Body") if key not in raw]
        if missing:
            raise BatchInconsistencyError(
                f"Received a message without {', '.join(missing)}"
            )
        return cls(
            message_id=raw["MessageId"],
            receipt_handle=raw["ReceiptHandle"],
            body=raw["Body"],
            message_attributes=raw.get("MessageAttributes", {}),
            attributes=raw.get("Attributes", {}),
        )

    def to_send_entry(self) -> Dict[str, Any]:
        """SendMessageBatch entry, correlated by the message's own id."""
        return {
            "Id": self.message_id,
            "MessageBody": self.body,
            "MessageAttributes": self.message_attributes,
        }

    def to_delete_entry(self) -> Dict[str, str]:
        """DeleteMessageBatch entry for this delivery."""
        return {
            "Id": self.message_id,
            "ReceiptHandle": self.receipt_handle,
        }


class FailedEntry(BaseModel):
    """A batch entry rejected by the queue service."""

    model_config = ConfigDict(frozen=True)

    id: str
    code: str = "Unknown"
    message: str = ""
    sender_fault: bool = False

    @classmethod
    def from_sqs(cls, raw: Dict[str, Any]) -> "FailedEntry":
        return cls(
            id=raw["Id"],
            code=raw.get("Code", "Unknown"),
            message=raw.get("Message", ""),
            sender_fault=raw.get("SenderFault", False),
        )


class BatchOutcome(BaseModel):
    """
    Result of resending a batch of dead letter messages.

    Every message of the batch appears exactly once, either in `resent`
    (accepted by the source queue, with its original receipt handle) or
    in `failed`.
    """

    resent: List[DeadLetterMessage] = Field(default_factory=list)
    failed: List[FailedEntry] = Field(default_factory=list)


class DeleteOutcome(BaseModel):
    """Result of deleting a batch of receipt handles from the DLQ."""

    deleted: List[str] = Field(default_factory=list)
    failed: List[FailedEntry] = Field(default_factory=list)


class RedriveStats(BaseModel):
    """Counters accumulated over one redrive invocation."""

    batches: int = 0
    received: int = 0
    resent: int = 0
    deleted: int = 0
    failed_to_resend: int = 0
    failed_to_delete: int = 0

    @property
    def migrated(self) -> int:
        """Messages resent to the source queue and removed from the DLQ."""
        return self.deleted

    def record(self, batch: BatchOutcome, deletion: DeleteOutcome) -> None:
        self.batches += 1
        self.received += len(batch.resent) + len(batch.failed)
        self.resent += len(batch.resent)
        self.failed_to_resend += len(batch.failed)
        self.deleted += len(deletion.deleted)
        self.failed_to_delete += len(deletion.failed)

    def as_dict(self) -> Dict[str, int]:
        return {**self.model_dump(), "migrated": self.migrated}
