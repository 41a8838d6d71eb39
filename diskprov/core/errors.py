"""Exceptions raised by the disk provisioning engine.

Subclasses of ``DiskProvisioningError`` are precondition failures: the
invocation is abandoned and reported as ``Fatal``. ``RetryRequested`` asks
the supervisor to replay the whole invocation later.
"""


class DiskProvisioningError(Exception):
    """Base class for fatal provisioning failures."""


class UnsupportedRequestType(DiskProvisioningError):
    def __init__(self, request_type):
        self.request_type = request_type
        super().__init__(f"Can not handle vmdb_object_type: {request_type}")


class MissingVm(DiskProvisioningError):
    def __init__(self, message: str = "vm not found"):
        super().__init__(message)


class MissingOptions(DiskProvisioningError):
    def __init__(self, message: str = "options not found"):
        super().__init__(message)


class UnresolvedDatastore(DiskProvisioningError):
    def __init__(self, message: str = "Could not determine destination datastore name"):
        super().__init__(message)


class RetryRequested(Exception):
    """Raised by a collaborator to have the invocation replayed after a delay."""

    def __init__(self, delay_seconds: int, reason: str):
        self.delay_seconds = max(int(delay_seconds), 0) # negative delays mean "retry now"
        self.reason = reason
        super().__init__(f"Retry after {self.delay_seconds} seconds: {reason}")
