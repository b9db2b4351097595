import os
import logging
import signal
import threading
from typing import NamedTuple

from retry.api import retry_call

from queue_autoscaler.common.logger import setup_logging
from queue_autoscaler.config import load_config, Config, TRUE_VALUES
from queue_autoscaler.errors import AutoscalerError, TransientCollaboratorError
from queue_autoscaler.kube.replicas import KubernetesReplicaController, load_kube_config
from queue_autoscaler.queue_metrics.rabbitmq import RabbitMQQueue
from queue_autoscaler.scaler import calculate_scaling, ScalingDecision


class TickResult(NamedTuple):
    """What one iteration of the control loop observed and did."""
    pending_messages: int
    current_replicas: int
    decision: ScalingDecision
    scaled: bool


class ControlLoop:
    """
    Polls the queue backlog and keeps the deployment's replica count in step with it.

    Each tick reads the backlog and the live replica count, calculates the
    target and applies it only when it differs from the current count. Any
    collaborator error ends the loop by propagating out of run().
    """

    def __init__(self, config: Config, queue, replicas, stop_event: threading.Event = None):
        self._config = config
        self._params = config.scaling_parameters()
        self._queue = queue
        self._replicas = replicas
        self._stop_event = stop_event if stop_event is not None else threading.Event()

    def _call(self, func, *args):
        # Only transient errors are retried; with one try this is a plain call
        return retry_call(
            func,
            fargs=args,
            exceptions=TransientCollaboratorError,
            tries=self._config.collaborator_retries,
            delay=self._config.retry_delay,
            backoff=2
        )

    def run_once(self) -> TickResult:
        """Run a single read, decide, apply iteration."""
        config = self._config

        pending_messages = self._call(self._queue.inspect, config.queue_name)
        logging.debug(f"Message count: {pending_messages}")

        current_replicas = self._call(self._replicas.get_replicas, config.namespace, config.deployment)
        logging.debug(f"Current replicas: {current_replicas}")

        decision = calculate_scaling(pending_messages, current_replicas, self._params)
        logging.debug(f"Raw replicas: {decision.raw}, bounded to [{self._params.min_replicas}, "
                      f"{self._params.max_replicas}]: {decision.bounded}")

        scaled = decision.target != current_replicas
        if scaled:
            self._call(self._replicas.set_replicas, config.namespace, config.deployment, decision.target)

        logging.info(f"Tick: backlog={pending_messages} current={current_replicas} "
                     f"target={decision.target} scaled={scaled}")

        return TickResult(
            pending_messages=pending_messages,
            current_replicas=current_replicas,
            decision=decision,
            scaled=scaled
        )

    def run(self):
        """Run ticks every poll interval until stop() is called or an error is raised."""
        logging.info(f"Starting autoscaler for deployment {self._config.namespace}/{self._config.deployment} "
                     f"on queue {self._config.queue_name}, polling every {self._params.poll_interval}s")

        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self._params.poll_interval)

        logging.info("Autoscaler stopped")

    def stop(self):
        self._stop_event.set()


def main(environ=None) -> int:
    """
    Process entry point.

    Loads configuration, connects to RabbitMQ and Kubernetes and runs the
    control loop until a fatal error or a termination signal.

    Returns:
        int: Exit status, 0 after a graceful stop and 1 on any fatal error
    """
    environ = os.environ if environ is None else environ

    setup_logging(
        level=environ.get('LOG_LEVEL', 'INFO').upper(),
        debug=environ.get('DEBUG', '').lower() in TRUE_VALUES,
        log_format=environ.get('LOG_FORMAT', 'text')
    )

    queue = None
    try:
        config = load_config(environ)

        load_kube_config(in_cluster=config.kube_in_cluster, kubeconfig=config.kubeconfig)
        replicas = KubernetesReplicaController()
        queue = RabbitMQQueue(config.amqp_url)

        loop = ControlLoop(config, queue, replicas)

        def handle_signal(signum, frame):
            logging.info(f"Received signal {signal.Signals(signum).name}, stopping after current tick")
            loop.stop()

        signal.signal(signal.SIGTERM, handle_signal)
        signal.signal(signal.SIGINT, handle_signal)

        loop.run()
    except AutoscalerError as e:
        logging.error(f"Fatal {e.subsystem} error: {e}")
        return 1
    finally:
        if queue is not None:
            queue.close()

    return 0
