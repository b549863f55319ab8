"""
Package: template
Description: CloudFormation generation for queue constructs.
"""

from .compiler import QueueTemplateCompiler

__all__ = ["QueueTemplateCompiler"]
