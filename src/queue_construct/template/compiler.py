"""
Module: compiler.py
Description: Compile a QueueConfig into CloudFormation resources.

Produces the template fragment for one queue construct: the queue, its
dead letter queue, the worker event source mapping, optional DLQ
alerting, the outputs used to resolve queue URLs after deployment, and
the IAM statement letting application functions publish to the queue.

The mapping is deterministic and stateless: the same configuration
always compiles to the same fragment.
"""

from typing import Any, Dict, List

from queue_construct.models.queue import QueueConfig
from queue_construct.template.naming import function_logical_id, logical_id, output_logical_id, resource_name
from queue_construct.utils.logger import get_logger

logger = get_logger(__name__)

DLQ_RETENTION_SECONDS = 14 * 24 * 60 * 60


def _get_att(resource: str, attribute: str) -> Dict[str, List[str]]:
    return {"Fn::GetAtt": [resource, attribute]}


def _ref(resource: str) -> Dict[str, str]:
    return {"Ref": resource}


class QueueTemplateCompiler:
    """
    Build CloudFormation resources for queue constructs.

    Attributes:
        service_name: Service name prefixed to physical names
        stage: Deployment stage prefixed to physical names

    Example:
        >>> compiler = QueueTemplateCompiler("shop", "dev")
        >>> fragment = compiler.compile(config)
        >>> sorted(fragment)
        ['Outputs', 'Resources']
    """

    def __init__(self, service_name: str, stage: str):
        self.service_name = service_name
        self.stage = stage

    def queue_logical_id(self, config: QueueConfig) -> str:
        return logical_id(config.name, "Queue")

    def dlq_logical_id(self, config: QueueConfig) -> str:
        return logical_id(config.name, "Dlq")

    def output_logical_id(self, construct_id: str, output: str) -> str:
        """Logical id of a stack output, e.g. output 'QueueUrl' or 'DlqUrl'."""
        return output_logical_id(construct_id, output)

    def worker_function_name(self, config: QueueConfig) -> str:
        return f"{config.name}Worker"

    def compile(self, config: QueueConfig) -> Dict[str, Any]:
        """
        Compile one construct into a template fragment.

        Args:
            config: Validated queue configuration

        Returns:
            Dict with 'Resources' and 'Outputs' sections
        """
        queue_id = self.queue_logical_id(config)
        dlq_id = self.dlq_logical_id(config)
        queue_name = resource_name(self.service_name, self.stage, config.name)

        resources: Dict[str, Any] = {
            dlq_id: {
                "Type": "AWS::SQS::Queue",
                "Properties": {
                    "QueueName": f"{queue_name}-dlq",
                    "MessageRetentionPeriod": DLQ_RETENTION_SECONDS,
                },
                "UpdateReplacePolicy": "Delete",
                "DeletionPolicy": "Delete",
            },
            queue_id: {
                "Type": "AWS::SQS::Queue",
                "Properties": {
                    "QueueName": queue_name,
                    "VisibilityTimeout": config.visibility_timeout,
                    "RedrivePolicy": {
                        "deadLetterTargetArn": _get_att(dlq_id, "Arn"),
                        "maxReceiveCount": config.max_retries,
                    },
                },
                "UpdateReplacePolicy": "Delete",
                "DeletionPolicy": "Delete",
            },
            self._event_source_mapping_id(config): self._event_source_mapping(config, queue_id),
        }

        if config.alarm is not None:
            resources.update(self._alarm_resources(config, dlq_id, queue_name))

        outputs = {
            self.output_logical_id(config.name, "QueueArn"): {
                "Description": f'ARN of the "{config.name}" SQS queue.',
                "Value": _get_att(queue_id, "Arn"),
            },
            self.output_logical_id(config.name, "QueueUrl"): {
                "Description": f'URL of the "{config.name}" SQS queue.',
                "Value": _ref(queue_id),
            },
            self.output_logical_id(config.name, "DlqUrl"): {
                "Description": f'URL of the "{config.name}" SQS dead letter queue.',
                "Value": _ref(dlq_id),
            },
        }

        logger.debug(
            "Queue construct compiled",
            construct_id=config.name,
            resources=list(resources),
            alarm=config.alarm is not None
        )

        return {"Resources": resources, "Outputs": outputs}

    def _event_source_mapping_id(self, config: QueueConfig) -> str:
        function_id = function_logical_id(self.worker_function_name(config))
        queue_id = self.queue_logical_id(config)
        return f"{function_id[:-len('LambdaFunction')]}EventSourceMappingSQS{queue_id[:1].upper()}{queue_id[1:]}"

    def _event_source_mapping(self, config: QueueConfig, queue_id: str) -> Dict[str, Any]:
        function_id = function_logical_id(self.worker_function_name(config))
        return {
            "Type": "AWS::Lambda::EventSourceMapping",
            "Properties": {
                "BatchSize": config.batch_size,
                "Enabled": True,
                "EventSourceArn": _get_att(queue_id, "Arn"),
                "FunctionName": _get_att(function_id, "Arn"),
                "MaximumBatchingWindowInSeconds": config.max_batching_window,
            },
        }

    def _alarm_resources(self, config: QueueConfig, dlq_id: str, queue_name: str) -> Dict[str, Any]:
        topic_id = logical_id(config.name, "AlarmTopic")
        return {
            topic_id: {
                "Type": "AWS::SNS::Topic",
                "Properties": {
                    "TopicName": f"{queue_name}-dlq-alarm-topic",
                    "DisplayName": f"[Alert][{config.name}] There are failed jobs in the dead letter queue.",
                },
            },
            logical_id(config.name, "AlarmTopicSubscription"): {
                "Type": "AWS::SNS::Subscription",
                "Properties": {
                    "Protocol": "email",
                    "TopicArn": _ref(topic_id),
                    "Endpoint": config.alarm,
                },
            },
            logical_id(config.name, "Alarm"): {
                "Type": "AWS::CloudWatch::Alarm",
                "Properties": {
                    "AlarmName": f"{queue_name}-dlq-alarm",
                    "AlarmDescription": "Alert triggered when there are failed jobs in the dead letter queue.",
                    "AlarmActions": [_ref(topic_id)],
                    "ComparisonOperator": "GreaterThanThreshold",
                    "Dimensions": [
                        {
                            "Name": "QueueName",
                            "Value": _get_att(dlq_id, "QueueName"),
                        }
                    ],
                    "EvaluationPeriods": 1,
                    "MetricName": "ApproximateNumberOfMessagesVisible",
                    "Namespace": "AWS/SQS",
                    "Period": 60,
                    "Statistic": "Sum",
                    "Threshold": 0,
                },
            },
        }

    def worker_function(self, config: QueueConfig) -> Dict[str, Dict[str, Any]]:
        """Worker function definition for the host deployment tool."""
        return {
            self.worker_function_name(config): {
                "handler": config.worker.handler,
                "timeout": config.worker.timeout,
            }
        }

    def permissions(self, config: QueueConfig) -> List[Dict[str, Any]]:
        """IAM statements granted to the application's functions."""
        return [
            {
                "Effect": "Allow",
                "Action": "sqs:SendMessage",
                "Resource": [_get_att(self.queue_logical_id(config), "Arn")],
            }
        ]

    def references(self, config: QueueConfig) -> Dict[str, Dict[str, Any]]:
        """CloudFormation references other resources can use."""
        queue_id = self.queue_logical_id(config)
        return {
            "queueUrl": _ref(queue_id),
            "queueArn": _get_att(queue_id, "Arn"),
        }
