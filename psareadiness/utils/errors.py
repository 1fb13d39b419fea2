from typing import Optional


class PSAReadinessError(Exception):
    pass


class InvalidLevel(PSAReadinessError, ValueError):
    def __init__(self, value: str):
        super().__init__(f"invalid pod security level: {value!r}")
        self.value = value


class NoSignal(PSAReadinessError):
    """No annotation or parseable warn/audit label to derive an enforce level from."""

    def __init__(self, namespace: str):
        super().__init__(
            f"unable to determine if namespace {namespace!r} is violating because "
            "no appropriate labels or annotations were found"
        )
        self.namespace = namespace


class CollaboratorError(PSAReadinessError):
    def __init__(self, message: str, namespace: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.namespace = namespace
        self.status = status


class InternalError(PSAReadinessError):
    pass
