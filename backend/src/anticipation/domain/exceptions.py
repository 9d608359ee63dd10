"""
Error types raised by the anticipation domain and its collaborators.

Domain errors are caller-correctable and are rendered to the client with
their message. StoreFailure wraps infrastructure problems and is never
shown to the client verbatim.
"""


class AnticipationError(Exception):
    """Base class for business rule violations."""

    default_message = "Anticipation request is invalid."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCreatorError(AnticipationError):
    """Creator id is missing or the nil UUID."""

    default_message = "CreatorId must be a valid, non-empty UUID."


class BelowMinimumAmountError(AnticipationError):
    """Gross amount is under the minimum threshold."""

    default_message = "Requested amount must be at least 100.00."


class InvalidAmountError(AnticipationError):
    """Gross amount has more precision than a stored amount can hold."""

    default_message = "Requested amount must have at most 2 decimal places."


class DuplicatePendingRequestError(AnticipationError):
    """Creator already has an unresolved request."""

    default_message = "Creator already has a pending anticipation request."


class InvalidTransitionError(AnticipationError):
    """Approve or reject attempted on a request that is no longer pending."""

    default_message = "Only pending requests can be approved or rejected."


class InvalidFeeRateError(AnticipationError):
    """Fee rate outside the [0, 1] range or finer than 4 decimal places."""

    default_message = "Fee rate must be between 0 and 1 (0% - 100%)."


class NotFoundError(AnticipationError):
    """Referenced request id does not exist."""

    default_message = "Anticipation request not found."


class StoreFailure(Exception):
    """
    Infrastructure failure inside a request store.

    Raised for connectivity problems, constraint violations and
    concurrent-modification conflicts detected at commit time.
    """
