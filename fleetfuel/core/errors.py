# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------
#
# Every error carries a `category` so the presentation layer can pick a
# message family (prompt a retry, show a permissions message, ask for a
# refresh) without parsing messages.


class FleetFuelError(Exception):
    """Base class for all errors surfaced by the fuel-request service."""
    category = "error"


class ValidationError(FleetFuelError):
    """Bad input shape or values; the caller can correct and resubmit."""
    category = "invalid_input"


class PermissionDeniedError(FleetFuelError):
    """The actor's role does not grant this operation."""
    category = "not_allowed"


class UnauthorizedTransitionError(PermissionDeniedError):
    """No transition exists for the request's status and the actor's role."""

    def __init__(self, status: str, role: str):
        self.status = status
        self.role = role
        super().__init__(f"Role '{role}' cannot decide a request in status '{status}'")


class NotFoundError(FleetFuelError):
    category = "not_found"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found")


class StaleTransitionError(FleetFuelError):
    """The stage was already decided, usually by a concurrent caller."""
    category = "stale"


class StoreError(FleetFuelError):
    """Transient infrastructure failure (database or blob store). Retryable."""
    category = "retry"


class AuthError(FleetFuelError):
    category = "unauthenticated"


class PartialSuccessWarning(Warning):
    """Request created, but one or more attachments could not be stored."""
    category = "partial"

    def __init__(self, request_id: str, failed: list[str]):
        self.request_id = request_id
        self.failed = failed
        super().__init__(
            f"Request '{request_id}' created; {len(failed)} attachment(s) failed: {', '.join(failed)}"
        )
