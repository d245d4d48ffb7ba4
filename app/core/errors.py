# Errori di dominio. Il Forbidden resta il PermissionError built-in.


class AssignmentNotFoundError(LookupError):
    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message)


class SubmissionNotFoundError(LookupError):
    def __init__(self, message: str = "No submission found"):
        super().__init__(message)


class InvalidStateError(ValueError):
    """L'operazione viola una regola del ciclo di vita dell'assignment."""
