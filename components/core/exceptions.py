"""Domain errors raised by repositories and the reconciliation engine."""


class SavingsPlannerError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SavingsPlannerError):
    """Missing or invalid period, dates, amounts or lifecycle action."""

    status_code = 400


class NotFoundError(SavingsPlannerError):
    """Plan, deposit or other record does not exist for the caller."""

    status_code = 404


class PersistenceError(SavingsPlannerError):
    """Store unavailable or constraint violated; the transaction was rolled back."""

    status_code = 500
