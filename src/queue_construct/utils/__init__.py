"""
Module: utils
Description: Package initialization for utility functions.

Current utilities:
- logger: Structured logging configuration and helpers
- batch_helpers: SQS batch size limits
"""

__all__ = []
