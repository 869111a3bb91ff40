"""
Business and transient error taxonomy.

Every error carries a stable `code` and the HTTP status the API layer
answers with. Views never build error bodies by hand; they raise one of
these and `apps.core.api.api_endpoint` renders it.
"""


class PDCError(Exception):
    """Base class for errors surfaced to API callers."""
    code = 'ERROR'
    http_status = 400
    retryable = False

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        body = {
            'code': self.code,
            'message': self.message,
            'retryable': self.retryable,
        }
        body.update({k: v for k, v in self.details.items() if v is not None})
        return body


class ValidationException(PDCError):
    """Malformed input: bad amount, date, batch size, missing field."""
    code = 'VALIDATION_ERROR'
    http_status = 400

    def __init__(self, message, errors=None):
        super().__init__(message, errors=errors)
        self.errors = errors or {}


class DuplicateException(PDCError):
    """Cheque number collision for a tenant."""
    code = 'DUPLICATE'
    http_status = 409

    def __init__(self, message, cheque_numbers=None):
        super().__init__(message, chequeNumbers=list(cheque_numbers or []))
        self.cheque_numbers = list(cheque_numbers or [])


class EntityNotFoundException(PDCError):
    code = 'NOT_FOUND'
    http_status = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} not found with id: {entity_id}", entity=entity, id=str(entity_id))
        self.entity = entity
        self.entity_id = entity_id


class InvalidStatusException(PDCError):
    """Requested transition is not an edge of the PDC state machine."""
    code = 'INVALID_STATUS'
    http_status = 409

    def __init__(self, current_status, requested_status, message=None):
        current = str(current_status)
        requested = str(requested_status)
        super().__init__(
            message or f"Cannot move PDC from {current} to {requested}",
            currentStatus=current,
            requestedStatus=requested,
        )
        self.current_status = current
        self.requested_status = requested


class ConcurrencyConflict(PDCError):
    """The caller acted on a stale version; refetch and retry."""
    code = 'CONCURRENCY_CONFLICT'
    http_status = 409
    retryable = True

    def __init__(self, expected_version, current_version, current_status=None):
        super().__init__(
            f"PDC was modified concurrently (expected version {expected_version}, "
            f"current version {current_version}). Refresh and retry.",
            expectedVersion=expected_version,
            currentVersion=current_version,
            currentStatus=str(current_status) if current_status is not None else None,
        )
        self.expected_version = expected_version
        self.current_version = current_version


class ForbiddenException(PDCError):
    code = 'FORBIDDEN'
    http_status = 403

    def __init__(self, message='You do not have permission to perform this operation.'):
        super().__init__(message)


class TransientError(PDCError):
    """Internal failure (lock or statement timeout, lost connection)."""
    code = 'TRANSIENT_ERROR'
    http_status = 503
    retryable = True

    def __init__(self, message='The operation could not be completed. Please retry.'):
        super().__init__(message)


class ChainIntegrityError(PDCError):
    """A replacement chain revisited a node; stored pointers are corrupt."""
    code = 'CHAIN_INTEGRITY_ERROR'
    http_status = 500
