class TruthNodeError(Exception):
    """Base class for errors raised by TruthNode services."""


class NotFoundError(TruthNodeError):
    def __init__(self, kind, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class ValidationError(TruthNodeError, ValueError):
    pass


class PermissionDeniedError(TruthNodeError):
    pass


class ConflictError(TruthNodeError):
    pass


class SinkFailure(TruthNodeError):
    """An outbound collaborator (notification or settlement) failed."""

    def __init__(self, sink, reason):
        self.sink = sink
        self.reason = reason
        super().__init__(f"{sink} failed: {reason}")
