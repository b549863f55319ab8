"""
Package: queue_construct
Description: SQS queue construct with dead letter queue tooling.

Compiles a declarative queue configuration into CloudFormation resources
(queue, dead letter queue, worker binding, optional alarm) and provides
the operator commands draining the dead letter queue: purge and retry.
"""

__version__ = "0.1.0"
