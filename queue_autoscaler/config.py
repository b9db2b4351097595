import math
import os
from typing import Mapping, NamedTuple, Optional

from queue_autoscaler.errors import ConfigurationError
from queue_autoscaler.scaler import ScalingParameters

TRUE_VALUES = ('true', '1', 't', 'yes')
FALSE_VALUES = ('false', '0', 'f', 'no')
LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')
LOG_FORMATS = ('text', 'json')


class Config(NamedTuple):
    """Configuration for the autoscaler."""
    # Queue configuration
    amqp_url: str
    queue_name: str

    # Kubernetes configuration
    namespace: str
    deployment: str
    kube_in_cluster: Optional[bool]
    kubeconfig: Optional[str]

    # Scaling parameters
    min_replicas: int
    max_replicas: int
    messages_per_replica: int
    scale_down_damping: float
    poll_interval: int

    # Collaborator retries, 1 means no retry
    collaborator_retries: int
    retry_delay: float

    # Logging
    debug: bool
    log_level: str
    log_format: str

    def scaling_parameters(self) -> ScalingParameters:
        return ScalingParameters(
            min_replicas=self.min_replicas,
            max_replicas=self.max_replicas,
            messages_per_replica=self.messages_per_replica,
            scale_down_damping=self.scale_down_damping,
            poll_interval=self.poll_interval
        )


class _Reader:
    """Reads named settings from a mapping and records every problem found."""

    def __init__(self, environ: Mapping[str, str]):
        self._environ = environ
        self.problems = []

    def _raw(self, name, required):
        value = self._environ.get(name, '')
        if value == '':
            if required:
                self.problems.append(f"Environment variable {name} is not set")
            return None
        return value.strip()

    def string(self, name, required=True, default=None):
        value = self._raw(name, required)
        return default if value is None else value

    def integer(self, name, required=True, default=None, minimum=None):
        value = self._raw(name, required)
        if value is None:
            return default
        try:
            number = int(value)
        except ValueError:
            self.problems.append(f"{name} is not a valid int: {value!r}")
            return default
        if minimum is not None and number < minimum:
            self.problems.append(f"{name} must be >= {minimum}, got {number}")
        return number

    def number(self, name, required=True, default=None, minimum=None):
        value = self._raw(name, required)
        if value is None:
            return default
        try:
            number = float(value)
        except ValueError:
            self.problems.append(f"{name} is not a valid float: {value!r}")
            return default
        if not math.isfinite(number):
            self.problems.append(f"{name} must be a finite number, got {value!r}")
        elif minimum is not None and number < minimum:
            self.problems.append(f"{name} must be >= {minimum}, got {number}")
        return number

    def boolean(self, name, default=None):
        value = self._raw(name, required=False)
        if value is None:
            return default
        if value.lower() in TRUE_VALUES:
            return True
        if value.lower() in FALSE_VALUES:
            return False
        self.problems.append(f"{name} is not a valid boolean: {value!r}")
        return default

    def choice(self, name, choices, default=None):
        value = self._raw(name, required=False)
        if value is None:
            return default
        for option in choices:
            if value.lower() == option.lower():
                return option
        self.problems.append(f"{name} must be one of {', '.join(choices)}, got {value!r}")
        return default


def load_config(environ: Mapping[str, str] = None) -> Config:
    """
    Load and validate configuration from environment variables.

    All settings are checked before returning, and every problem is reported
    at once.

    Args:
        environ: Optional mapping to read instead of os.environ

    Returns:
        Config: Validated configuration

    Raises:
        ConfigurationError: If any required setting is missing or malformed
    """
    reader = _Reader(os.environ if environ is None else environ)

    amqp_url = reader.string('AMQP_HOST')
    queue_name = reader.string('AMQP_BUILD_QUEUE')
    namespace = reader.string('NAMESPACE')
    deployment = reader.string('DEPLOYMENT')
    kube_in_cluster = reader.boolean('KUBE_IN_CLUSTER')
    kubeconfig = reader.string('KUBECONFIG', required=False)

    max_replicas = reader.integer('MAX_PODS', minimum=0)
    min_replicas = reader.integer('MIN_PODS', minimum=0)
    messages_per_replica = reader.integer('MSG_PER_POD', minimum=1)
    poll_interval = reader.integer('SCAN_INTERVAL', minimum=1)
    scale_down_damping = reader.number('SCALE_FACTOR', minimum=0)

    collaborator_retries = reader.integer('COLLABORATOR_RETRIES', required=False, default=1, minimum=1)
    retry_delay = reader.number('RETRY_DELAY', required=False, default=1.0, minimum=0)

    debug = reader.boolean('DEBUG', default=False)
    log_level = reader.choice('LOG_LEVEL', LOG_LEVELS, default='INFO')
    log_format = reader.choice('LOG_FORMAT', LOG_FORMATS, default='text')

    if min_replicas is not None and max_replicas is not None and min_replicas > max_replicas:
        reader.problems.append(f"MIN_PODS ({min_replicas}) must not be greater than MAX_PODS ({max_replicas})")

    if reader.problems:
        raise ConfigurationError(reader.problems)

    return Config(
        amqp_url=amqp_url,
        queue_name=queue_name,
        namespace=namespace,
        deployment=deployment,
        kube_in_cluster=kube_in_cluster,
        kubeconfig=kubeconfig,
        min_replicas=min_replicas,
        max_replicas=max_replicas,
        messages_per_replica=messages_per_replica,
        scale_down_damping=scale_down_damping,
        poll_interval=poll_interval,
        collaborator_retries=collaborator_retries,
        retry_delay=retry_delay,
        debug=debug,
        log_level=log_level,
        log_format=log_format
    )
