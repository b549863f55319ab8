"""
Package: stack
Description: Access to the deployed CloudFormation stack.
"""

from .outputs import StackOutputResolver

__all__ = ["StackOutputResolver"]
