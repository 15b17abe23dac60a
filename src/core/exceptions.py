"""Exception hierarchy for the billing core."""


class BillingError(Exception):
    """Base exception for all billing errors."""
    pass


class NotFoundError(BillingError):
    """Requested record does not exist."""
    pass


class InvalidStateError(BillingError):
    """Record is in a state that does not allow the operation."""
    pass


class SequenceConflictError(BillingError):
    """Invoice number could not be allocated after repeated write conflicts."""

    def __init__(self, organization_id: str, attempts: int):
        super().__init__(
            f"Invoice number allocation for organization {organization_id} "
            f"lost the race {attempts} times"
        )
        self.organization_id = organization_id
        self.attempts = attempts
