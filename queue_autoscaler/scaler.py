import logging
import math
from typing import NamedTuple


class ScalingParameters(NamedTuple):
    """Bounds and tuning for the scaling formula. Fixed for the life of the process."""
    min_replicas: int
    max_replicas: int
    messages_per_replica: int
    scale_down_damping: float
    poll_interval: int


class ScalingDecision(NamedTuple):
    """Result of one scaling calculation."""
    raw: int
    bounded: int
    target: int


def calculate_scaling(pending_messages, current_replicas, params):
    """
    Calculate the replica count for the given backlog.

    Scale-up is applied in full. Scale-down keeps
    floor(gap * scale_down_damping) of the gap between the current and the
    bounded count, so a damping of 0 shrinks at once and a damping of 1 never
    shrinks. The damped value is not clamped again.

    Args:
        pending_messages: Messages waiting in the queue
        current_replicas: Live replica count of the deployment
        params: ScalingParameters

    Returns:
        ScalingDecision: raw, bounded and final target replica counts
    """
    # ceil without going through float
    raw = -(-pending_messages // params.messages_per_replica)
    bounded = max(params.min_replicas, min(params.max_replicas, raw))

    target = bounded
    if bounded < current_replicas:
        kept = math.floor((current_replicas - bounded) * params.scale_down_damping)
        target = bounded + kept
        logging.debug(f"Scale down damped by {params.scale_down_damping}: keeping {kept} "
                      f"of {current_replicas - bounded} replicas, target {target}")

    return ScalingDecision(raw=raw, bounded=bounded, target=target)


def decide(pending_messages, current_replicas, params):
    """Return the target replica count for the given backlog and replica count."""
    return calculate_scaling(pending_messages, current_replicas, params).target
