"""
Error Taxonomy for the Settlement Engine

Every error raised by the engine derives from SettlementError and carries the
HTTP status the API layer should answer with. Validation errors also derive
from ValueError so callers that only know about ValueError keep working.
"""


class SettlementError(Exception):
    """Base class for all engine errors."""

    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def error_type(self) -> str:
        return type(self).__name__


class InvalidSplitConfiguration(SettlementError, ValueError):
    """Split percentages, references or collaborator shares are inconsistent."""

    def __init__(self, rule: str, message: str):
        super().__init__(f"{rule}: {message}")
        self.rule = rule


class InvalidInput(SettlementError, ValueError):
    """A caller-supplied value is missing, non-finite or out of range."""


class EmptySplitSet(SettlementError, ValueError):
    """The collaboration has no revenue-share rules to distribute against."""


class CollaborationNotFound(SettlementError, LookupError):
    status_code = 404

    def __init__(self, collaboration_id: str):
        super().__init__(f"Collaboration not found: {collaboration_id}")
        self.collaboration_id = collaboration_id


class DistributionNotFound(SettlementError, LookupError):
    status_code = 404

    def __init__(self, distribution_id: str):
        super().__init__(f"Distribution not found: {distribution_id}")
        self.distribution_id = distribution_id


class CollaborationClosed(SettlementError):
    """Settlement or transition attempted on a completed/cancelled collaboration."""

    status_code = 409

    def __init__(self, collaboration_id: str, status: str):
        super().__init__(f"Collaboration {collaboration_id} is {status}; no further changes are accepted")
        self.collaboration_id = collaboration_id
        self.status = status


class DuplicateSettlement(SettlementError):
    status_code = 409

    def __init__(self, idempotency_key: str):
        super().__init__(f"Settlement already recorded for idempotency key: {idempotency_key}")
        self.idempotency_key = idempotency_key


class InvalidStatusTransition(SettlementError):
    status_code = 409

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class StoreUnavailable(SettlementError):
    """The persistence store failed. Safe to retry with backoff."""

    status_code = 503
    retryable = True
