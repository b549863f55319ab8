"""
Package: sqs_queue
Description: SQS batch operations used by the dead letter queue commands.
"""

from .sqs import SQSClient

__all__ = ["SQSClient"]
