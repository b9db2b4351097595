import logging
import os

from kubernetes import client, config as k8s_config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from queue_autoscaler.errors import OrchestrationError, TransientOrchestrationError

SERVICE_HOST_ENV = 'KUBERNETES_SERVICE_HOST'


def load_kube_config(in_cluster=None, kubeconfig=None):
    """
    Load Kubernetes client configuration.

    Args:
        in_cluster: Force in-cluster (True) or kubeconfig (False) loading.
                    When None, in-cluster is used if running inside a pod.
        kubeconfig: Optional kubeconfig path for out-of-cluster use

    Raises:
        OrchestrationError: If no usable configuration could be loaded
    """
    if in_cluster is None:
        in_cluster = SERVICE_HOST_ENV in os.environ

    try:
        if in_cluster:
            logging.info("Loading in-cluster Kubernetes config")
            k8s_config.load_incluster_config()
        else:
            logging.info(f"Loading kubeconfig from: {kubeconfig or 'default location'}")
            k8s_config.load_kube_config(config_file=kubeconfig)
    except (ConfigException, OSError) as e:
        raise OrchestrationError(f"Error creating config: {e}") from e


def _translate(action, e):
    """Map a Kubernetes client failure to the matching autoscaler error."""
    if isinstance(e, ApiException):
        if e.status == 429 or (e.status or 0) >= 500:
            return TransientOrchestrationError(f"Error {action}: {e.status} {e.reason}")
        return OrchestrationError(f"Error {action}: {e.status} {e.reason}")
    return TransientOrchestrationError(f"Error {action}: {e!r}")


class KubernetesReplicaController:
    """Reads and sets the replica count of a Deployment through its scale subresource."""

    def __init__(self, apps_api: client.AppsV1Api = None):
        self._apps_api = apps_api or client.AppsV1Api()

    def get_replicas(self, namespace: str, deployment: str) -> int:
        try:
            scale = self._apps_api.read_namespaced_deployment_scale(name=deployment, namespace=namespace)
        except (ApiException, HTTPError) as e:
            logging.error(f"Error getting scale of {namespace}/{deployment}: {e}", exc_info=True)
            raise _translate('getting scale', e) from e

        return scale.spec.replicas or 0

    def set_replicas(self, namespace: str, deployment: str, replicas: int):
        """
        Set the desired replica count of a deployment.

        Args:
            namespace: Namespace of the deployment
            deployment: Deployment name
            replicas: New replica count

        Raises:
            OrchestrationError: If the API rejects the change
            TransientOrchestrationError: If the API is unreachable or overloaded
        """
        body = {"spec": {"replicas": int(replicas)}}
        try:
            self._apps_api.patch_namespaced_deployment_scale(name=deployment, namespace=namespace, body=body)
        except (ApiException, HTTPError) as e:
            logging.error(f"Error scaling {namespace}/{deployment} to {replicas}: {e}", exc_info=True)
            raise _translate('scaling', e) from e

        logging.info(f"Scaled {namespace}/{deployment} to {replicas} replicas")
