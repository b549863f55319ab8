"""
Module: queue.py
Description: Configuration models for a queue construct.

Validates the declarative construct configuration found under
`constructs.<id>` of the YAML config file. Models are frozen: a
QueueConfig is built once and only read afterwards.

Key Components:
- WorkerConfig: Lambda worker consuming the queue
- QueueConfig: Queue construct configuration with derived values

Dependencies: pydantic, typing
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from queue_construct.errors import ConfigurationError

# A worker has up to 6 retries' worth of time before its message
# becomes visible again
VISIBILITY_TIMEOUT_FACTOR = 6
MAX_BATCHING_WINDOW_SECONDS = 60


class WorkerConfig(BaseModel):
    """
    Lambda function consuming messages from the queue.

    Attributes:
        handler: Handler path of the worker function (e.g. 'worker.handler')
        timeout: Function timeout in seconds
    """

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    handler: str = Field(..., min_length=1, description="Worker handler")
    timeout: int = Field(
        default=6,
        ge=1,
        le=900,
        description="Worker timeout in seconds"
    )


class QueueConfig(BaseModel):
    """
    Configuration of one queue construct.

    Attributes:
        name: Construct identifier (also used in resource names)
        type: Construct type, always 'queue'
        worker: Worker function consuming the queue
        max_retries: Deliveries before a message is dead-lettered
        batch_size: Messages handed to the worker per invocation
        alarm: Email notified when the dead letter queue has messages
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    name: str = Field(
        ...,
        pattern=r"^[A-Za-z][A-Za-z0-9_-]*$",
        description="Construct identifier"
    )
    type: Literal["queue"] = "queue"
    worker: WorkerConfig
    max_retries: int = Field(
        default=3,
        ge=1,
        alias="maxRetries",
        description="Number of deliveries before dead-lettering"
    )
    batch_size: int = Field(
        default=1,
        ge=1,
        le=10,
        alias="batchSize",
        description="Messages per worker invocation"
    )
    alarm: Optional[str] = Field(
        default=None,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Email address alerted on failed messages"
    )

    @computed_field
    @property
    def visibility_timeout(self) -> int:
        """Queue visibility timeout: 6 times the worker timeout."""
        return VISIBILITY_TIMEOUT_FACTOR * self.worker.timeout

    @property
    def max_batching_window(self) -> int:
        return MAX_BATCHING_WINDOW_SECONDS

    @classmethod
    def from_construct(cls, construct_id: str, configuration: Dict[str, Any]) -> "QueueConfig":
        """
        Build a QueueConfig from the raw construct mapping.

        Args:
            construct_id: Key of the construct in the config file
            configuration: Raw construct configuration

        Returns:
            Validated QueueConfig

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        if not isinstance(configuration, dict):
            raise ConfigurationError(
                f'Configuration of construct "{construct_id}" must be a mapping'
            )
        try:
            return cls.model_validate({**configuration, "name": construct_id})
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(
                f'Invalid configuration for construct "{construct_id}": {errors}'
            ) from e
