"""Exception hierarchy for the workflow engine."""


class WorkflowEngineError(Exception):
    """Base exception for all engine errors."""
    pass


class NoStartNodeError(WorkflowEngineError):
    """The graph has no node of type 'start'; nothing can run."""

    def __init__(self, message: str = "no start node found in workflow"):
        super().__init__(message)


class NodeExecutionError(WorkflowEngineError):
    """A node handler failed. Recorded on the node's step, never fatal."""
    pass


class NodeConfigError(NodeExecutionError):
    """Node metadata is missing or has the wrong shape."""
    pass


class IntegrationError(NodeExecutionError):
    """Outbound call of an integration node failed."""

    def __init__(self, message: str, url: str = "", status_code: int = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ConditionError(NodeExecutionError):
    """A condition node could not be evaluated."""
    pass
