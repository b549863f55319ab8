"""
Module: outputs.py
Description: Resolve deployed queue URLs from CloudFormation stack outputs.

The compiled template exports `<id>QueueUrl` and `<id>DlqUrl` outputs.
Commands acting on a deployed construct read them back here before
touching any queue.
"""

from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from queue_construct.errors import ResolutionError
from queue_construct.template.naming import output_logical_id
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)

QUEUE_ROLES = ("Queue", "Dlq")


class StackOutputResolver:
    """
    Read outputs of a deployed CloudFormation stack.

    Outputs are fetched once per resolver and cached for its lifetime.

    Attributes:
        stack_name: Name of the deployed stack
        client: boto3 CloudFormation client
    """

    def __init__(self, stack_name: str, region_name: Optional[str] = None, client: Any = None):
        if not stack_name or not isinstance(stack_name, str):
            raise ValueError("stack_name must be a non-empty string")

        self.stack_name = stack_name
        self.client = client or boto3.client('cloudformation', region_name=region_name)
        self._outputs: Optional[Dict[str, str]] = None

    def _load_outputs(self) -> Dict[str, str]:
        if self._outputs is not None:
            return self._outputs

        try:
            response = self.client.describe_stacks(StackName=self.stack_name)
        except ClientError as e:
            error_message = e.response['Error']['Message']
            if 'does not exist' in error_message:
                raise ResolutionError(
                    f'Stack "{self.stack_name}" is not deployed'
                ) from e
            logger.error(
                "Failed to describe CloudFormation stack",
                stack_name=self.stack_name,
                error_code=e.response['Error']['Code'],
                error_message=error_message
            )
            raise

        stacks = response.get('Stacks', [])
        if not stacks:
            raise ResolutionError(f'Stack "{self.stack_name}" is not deployed')

        self._outputs = {
            output['OutputKey']: output['OutputValue']
            for output in stacks[0].get('Outputs', [])
        }
        return self._outputs

    def get_stack_output(self, output_id: str) -> Optional[str]:
        """
        Get the value of one stack output.

        Returns:
            Output value, or None if the stack has no such output
        """
        return self._load_outputs().get(output_id)

    def resolve_queue_url(self, construct_id: str, role: str) -> str:
        """
        Resolve the URL of a deployed queue of a construct.

        Args:
            construct_id: Construct identifier
            role: 'Queue' for the source queue, 'Dlq' for the dead letter queue

        Returns:
            Fully-qualified queue URL

        Raises:
            ResolutionError: If the stack or the output is missing
        """
        if role not in QUEUE_ROLES:
            raise ValueError(f"role must be one of: {', '.join(QUEUE_ROLES)}")

        output_id = output_logical_id(construct_id, f"{role}Url")
        url = self.get_stack_output(output_id)
        if not url:
            raise ResolutionError(
                f'Could not find the {role} URL of construct "{construct_id}" in stack '
                f'"{self.stack_name}". Is the construct deployed?'
            )

        logger.debug(
            "Queue URL resolved",
            construct_id=construct_id,
            role=role,
            queue_url=url
        )
        return url
