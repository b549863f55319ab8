"""
Module: naming.py
Description: Logical ids and physical names of generated resources.

Logical ids follow the CDK unique-id scheme: the path components
concatenated, followed by 8 hex digits of the MD5 of the full path, so
that two constructs never produce colliding ids. Resources are the
default `Resource` child of their construct: that segment is hashed
but left out of the readable part. Outputs have no such child.
"""

import hashlib
import re

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
_DEFAULT_CHILD = "Resource"


def _unique_id(components: list, hashed: list) -> str:
    human = "".join(_NON_ALPHANUMERIC.sub("", component) for component in components)
    digest = hashlib.md5("/".join(hashed).encode("utf-8")).hexdigest()
    return f"{human}{digest[:8].upper()}"


def logical_id(construct_id: str, *path: str) -> str:
    """
    Compute the CloudFormation logical id of a construct resource.

    Example:
        >>> logical_id("emails", "Queue")
        'emailsQueueF057328A'
    """
    components = [construct_id, *path]
    return _unique_id(components, [*components, _DEFAULT_CHILD])


def output_logical_id(construct_id: str, output: str) -> str:
    """Logical id of a stack output, e.g. output 'QueueUrl' or 'DlqUrl'."""
    return _unique_id([construct_id, output], [construct_id, output])


def resource_name(service_name: str, stage: str, *parts: str) -> str:
    """Physical resource name: `<service>-<stage>-<parts...>`."""
    return "-".join([service_name, stage, *parts])


def function_logical_id(function_name: str) -> str:
    """Logical id of a Lambda function as generated by the Serverless Framework."""
    normalized = function_name.replace("-", "Dash").replace("_", "Underscore")
    return f"{normalized[:1].upper()}{normalized[1:]}LambdaFunction"


def stack_name(service_name: str, stage: str) -> str:
    return f"{service_name}-{stage}"
