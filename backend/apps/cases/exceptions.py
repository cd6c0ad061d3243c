class CaseWorkflowError(Exception):
    """Raised when a case operation is not allowed in the case's current state."""
