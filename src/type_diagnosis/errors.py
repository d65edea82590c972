"""Exceptions raised by the diagnosis engine."""


class DiagnosisError(Exception):
    """Base exception for the diagnosis engine."""
    pass


class ValidationError(DiagnosisError, ValueError):
    """An answer set that cannot be scored.

    Raised for missing, duplicate or malformed answers, unknown question ids
    or option keys, and selection counts outside a question's limits.
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ProfileSelectionError(DiagnosisError, RuntimeError):
    """No profile could be selected; the scoring configuration is broken."""
    def __init__(self, message: str = "Unable to determine top profile"):
        self.message = message
        super().__init__(self.message)
