"""
Queue-depth autoscaler for Kubernetes deployments.

This package watches the backlog of a RabbitMQ queue and sets the replica
count of a Kubernetes deployment so the number of workers follows the load,
within configured bounds and with damped scale-down.
"""

__version__ = "0.1.0"
