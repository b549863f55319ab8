"""
Module: construct.py
Description: Construct contract and the queue construct.

A construct is declared in the `constructs` section of the config file.
Its type selects a class registered in CONSTRUCT_TYPES, which validates
the configuration and exposes outputs, operator commands, CloudFormation
references and IAM permissions.

Key Components:
- Construct: Methods every construct exposes
- AwsProvider: Deployment context (service, stage, region, AWS clients)
- QueueConstruct: SQS queue + DLQ + worker, with failed:purge / failed:retry
- load_constructs(): Instantiate every declared construct

Dependencies: abc, typing
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from queue_construct.config.settings import Settings, settings as default_settings
from queue_construct.errors import ConfigurationError
from queue_construct.models.message import RedriveStats
from queue_construct.models.queue import QueueConfig
from queue_construct.redrive.loop import DLQRedriver
from queue_construct.redrive.purge import purge_dead_letter_queue
from queue_construct.sqs_queue.sqs import SQSClient
from queue_construct.stack.outputs import StackOutputResolver
from queue_construct.template.compiler import QueueTemplateCompiler
from queue_construct.template.naming import stack_name
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)


class Construct(ABC):
    """Methods a construct must expose."""

    @abstractmethod
    def outputs(self) -> Dict[str, Callable[[], Optional[str]]]:
        """Values shown to the operator once deployed."""

    @abstractmethod
    def commands(self) -> Dict[str, Callable[[], Any]]:
        """Operator commands, invoked as `<id>:<command>`."""

    @abstractmethod
    def references(self) -> Dict[str, Dict[str, Any]]:
        """CloudFormation references."""

    def permissions(self) -> List[Dict[str, Any]]:
        """IAM statements to add to the application's functions."""
        return []

    def template(self) -> Dict[str, Any]:
        """CloudFormation fragment ('Resources' and 'Outputs')."""
        return {"Resources": {}, "Outputs": {}}

    def post_deploy(self) -> None:
        """Hook run after the stack is deployed."""

    def pre_remove(self) -> None:
        """Hook run before the stack is removed."""


class AwsProvider:
    """
    Deployment context shared by the constructs of one service.

    AWS clients are created on first use so that compiling a template
    needs no credentials.
    """

    def __init__(
        self,
        service_name: str,
        stage: str,
        region: str,
        app_settings: Optional[Settings] = None,
        sqs_client: Optional[SQSClient] = None,
        resolver: Optional[StackOutputResolver] = None
    ):
        self.service_name = service_name
        self.stage = stage
        self.region = region
        self.settings = app_settings or default_settings
        self._sqs_client = sqs_client
        self._resolver = resolver

    @property
    def stack_name(self) -> str:
        return stack_name(self.service_name, self.stage)

    @property
    def sqs(self) -> SQSClient:
        if self._sqs_client is None:
            self._sqs_client = SQSClient(region_name=self.region)
        return self._sqs_client

    @property
    def resolver(self) -> StackOutputResolver:
        if self._resolver is None:
            self._resolver = StackOutputResolver(self.stack_name, region_name=self.region)
        return self._resolver


class QueueConstruct(Construct):
    """
    SQS queue consumed by a Lambda worker, with a dead letter queue.

    Commands:
        failed:purge: delete every message of the DLQ
        failed:retry: move every message of the DLQ back to the queue
    """

    type = "queue"
    schema = QueueConfig.model_json_schema(by_alias=True)

    def __init__(self, provider: AwsProvider, config: QueueConfig):
        self.provider = provider
        self.config = config
        self.id = config.name
        self.compiler = QueueTemplateCompiler(provider.service_name, provider.stage)

    @classmethod
    def create(cls, provider: AwsProvider, construct_id: str, configuration: Dict[str, Any]) -> "QueueConstruct":
        return cls(provider, QueueConfig.from_construct(construct_id, configuration))

    def outputs(self) -> Dict[str, Callable[[], Optional[str]]]:
        return {"queueUrl": self.get_queue_url}

    def commands(self) -> Dict[str, Callable[[], Any]]:
        return {
            "failed:purge": self.purge_dlq,
            "failed:retry": self.retry_dlq,
        }

    def references(self) -> Dict[str, Dict[str, Any]]:
        return self.compiler.references(self.config)

    def permissions(self) -> List[Dict[str, Any]]:
        return self.compiler.permissions(self.config)

    def template(self) -> Dict[str, Any]:
        return self.compiler.compile(self.config)

    def worker_function(self) -> Dict[str, Dict[str, Any]]:
        return self.compiler.worker_function(self.config)

    def get_queue_url(self) -> str:
        return self.provider.resolver.resolve_queue_url(self.id, "Queue")

    def get_dlq_url(self) -> str:
        return self.provider.resolver.resolve_queue_url(self.id, "Dlq")

    def purge_dlq(self) -> None:
        """Discard every message of the dead letter queue."""
        dlq_url = self.get_dlq_url()
        purge_dead_letter_queue(self.provider.sqs, dlq_url)

    def retry_dlq(self) -> RedriveStats:
        """
        Move every message of the dead letter queue back to the queue.

        Both URLs are resolved before any queue is touched.

        Raises:
            ResolutionError: If the construct is not deployed
            RedriveAbortedError: If a queue call failed mid-way
        """
        queue_url = self.get_queue_url()
        dlq_url = self.get_dlq_url()
        app_settings = self.provider.settings
        redriver = DLQRedriver(
            self.provider.sqs,
            queue_url,
            dlq_url,
            receive_batch_size=app_settings.receive_batch_size,
            visibility_timeout=app_settings.receive_visibility_timeout,
            wait_time_seconds=app_settings.receive_wait_time,
        )
        return redriver.retry()


CONSTRUCT_TYPES = {
    QueueConstruct.type: QueueConstruct,
}


def load_constructs(provider: AwsProvider, declarations: Dict[str, Any]) -> Dict[str, Construct]:
    """
    Instantiate every construct declared in the config file.

    Args:
        provider: Deployment context
        declarations: The `constructs` mapping (id -> configuration)

    Returns:
        Constructs keyed by id, in declaration order

    Raises:
        ConfigurationError: If a declaration is invalid or its type unknown
    """
    if declarations is None:
        return {}
    if not isinstance(declarations, dict):
        raise ConfigurationError("'constructs' must be a mapping of construct ids to configurations")

    constructs: Dict[str, Construct] = {}
    for construct_id, configuration in declarations.items():
        construct_type = configuration.get("type") if isinstance(configuration, dict) else None
        construct_class = CONSTRUCT_TYPES.get(construct_type)
        if construct_class is None:
            raise ConfigurationError(
                f'Construct "{construct_id}" has unknown type {construct_type!r}. '
                f"Supported types: {', '.join(CONSTRUCT_TYPES)}"
            )
        constructs[construct_id] = construct_class.create(provider, construct_id, configuration)

    logger.debug("Constructs loaded", constructs=list(constructs))
    return constructs
