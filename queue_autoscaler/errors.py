"""
Exception types raised by the autoscaler.

Every error carries the name of the subsystem it came from so the process
can report which part failed before it exits.
"""


class AutoscalerError(Exception):
    """Base class for all autoscaler errors."""
    subsystem = 'autoscaler'

    def __str__(self):
        return f"[{self.subsystem}] {super().__str__()}"


class ConfigurationError(AutoscalerError):
    """One or more settings are missing or malformed."""
    subsystem = 'configuration'

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__('; '.join(self.problems))


class CollaboratorError(AutoscalerError):
    """A call to the queue or the orchestration API failed."""


class TransientCollaboratorError(CollaboratorError):
    """A collaborator failure that may succeed if the call is repeated."""


class QueueError(CollaboratorError):
    subsystem = 'queue'


class TransientQueueError(QueueError, TransientCollaboratorError):
    pass


class OrchestrationError(CollaboratorError):
    subsystem = 'orchestration'


class TransientOrchestrationError(OrchestrationError, TransientCollaboratorError):
    pass
