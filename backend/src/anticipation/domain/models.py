"""
Domain model for anticipation requests.

An anticipation request lets a creator receive funds early against a gross
amount. A fixed percentage fee is retained and the remainder (the net
amount) is paid out once the request is approved.

Design Decisions:
- Decimal for all monetary values to avoid floating-point errors
- A single routine computes the net amount for construction and recalculation
- The aggregate mutates in place; terminal states cannot be left
- Business thresholds are module constants, not runtime settings
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import IntEnum
from uuid import UUID, uuid4

from .exceptions import (
    BelowMinimumAmountError,
    InvalidAmountError,
    InvalidCreatorError,
    InvalidFeeRateError,
    InvalidTransitionError,
)


# Smallest gross amount a creator may request
MINIMUM_AMOUNT = Decimal("100")

# Fee retained on every new request (5%)
DEFAULT_FEE_RATE = Decimal("0.05")

# Precision the stored columns hold: Numeric(18, 2) money, Numeric(5, 4) rate
AMOUNT_PLACES = 2
AMOUNT_DIGITS = 18
FEE_RATE_PLACES = 4

NIL_UUID = UUID(int=0)


class AnticipationStatus(IntEnum):
    """Lifecycle of a request. Values are the persisted integer codes."""
    PENDING = 0
    APPROVED = 1
    REJECTED = 2


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Convert an amount or rate to Decimal without going through binary floats."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_net_amount(amount: Decimal, fee_rate: Decimal) -> Decimal:
    """
    Compute the amount paid out after the fee is retained.

    net = amount - (amount * fee_rate)
    """
    fee = amount * fee_rate
    return amount - fee


def decimal_places(value: Decimal) -> int:
    """Number of significant digits after the decimal point (100.50 -> 1)."""
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_aware(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC (SQLite drops tzinfo)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(eq=False)
class AnticipationRequest:
    """
    Aggregate root for a single anticipation request.

    All invariants are checked on construction, so both new requests
    (via ``create``) and rows rehydrated from storage go through the
    same validation.

    Invariants:
        - creator_id is never the nil UUID
        - gross_amount >= MINIMUM_AMOUNT, with at most 2 decimal places
        - 0 <= fee_rate <= 1, with at most 4 decimal places
        - net_amount == gross_amount - gross_amount * fee_rate
        - status is PENDING exactly when decision_at is None
    """
    id: UUID
    creator_id: UUID
    gross_amount: Decimal
    requested_at: datetime
    fee_rate: Decimal = DEFAULT_FEE_RATE
    status: AnticipationStatus = AnticipationStatus.PENDING
    decision_at: datetime | None = None
    net_amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        self.gross_amount = to_decimal(self.gross_amount)
        self.fee_rate = to_decimal(self.fee_rate)
        self.status = AnticipationStatus(self.status)
        self.requested_at = _ensure_aware(self.requested_at)
        if self.decision_at is not None:
            self.decision_at = _ensure_aware(self.decision_at)

        if self.gross_amount < MINIMUM_AMOUNT:
            raise BelowMinimumAmountError(
                f"Requested amount must be at least {MINIMUM_AMOUNT:.2f}."
            )
        _validate_amount_precision(self.gross_amount)
        if self.creator_id is None or self.creator_id == NIL_UUID:
            raise InvalidCreatorError()
        _validate_fee_rate(self.fee_rate)
        if (self.status == AnticipationStatus.PENDING) != (self.decision_at is None):
            raise ValueError(
                f"Inconsistent decision timestamp for status {self.status.name}"
            )

        self.net_amount = calculate_net_amount(self.gross_amount, self.fee_rate)

    @classmethod
    def create(
        cls,
        creator_id: UUID,
        gross_amount: Decimal | int | str,
        requested_at: datetime | None = None,
    ) -> "AnticipationRequest":
        """
        Open a new pending request with the default fee.

        Raises:
            BelowMinimumAmountError: gross_amount is under MINIMUM_AMOUNT
            InvalidCreatorError: creator_id is missing or the nil UUID
        """
        return cls(
            id=uuid4(),
            creator_id=creator_id,
            gross_amount=to_decimal(gross_amount),
            requested_at=requested_at or utcnow(),
        )

    @classmethod
    def restore(
        cls,
        id: UUID,
        creator_id: UUID,
        gross_amount: Decimal,
        fee_rate: Decimal,
        requested_at: datetime,
        status: AnticipationStatus | int,
        decision_at: datetime | None,
    ) -> "AnticipationRequest":
        """
        Rebuild a stored request.

        Keeps the stored id and timestamps, derives the net amount again
        and re-checks every invariant.
        """
        return cls(
            id=id,
            creator_id=creator_id,
            gross_amount=gross_amount,
            requested_at=requested_at,
            fee_rate=fee_rate,
            status=status,
            decision_at=decision_at,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == AnticipationStatus.PENDING

    @property
    def fee_amount(self) -> Decimal:
        """Portion of the gross amount retained as fee."""
        return self.gross_amount - self.net_amount

    def approve(self) -> None:
        """Move a pending request to APPROVED."""
        if not self.is_pending:
            raise InvalidTransitionError("Only pending requests can be approved.")
        self._decide(AnticipationStatus.APPROVED)

    def reject(self) -> None:
        """Move a pending request to REJECTED."""
        if not self.is_pending:
            raise InvalidTransitionError("Only pending requests can be rejected.")
        self._decide(AnticipationStatus.REJECTED)

    def recalculate_fee(self, new_rate: Decimal | int | str) -> None:
        """
        Apply a different fee rate and recompute the net amount.

        The gross amount and the status are left untouched. An invalid
        rate leaves the request unchanged.

        Raises:
            InvalidFeeRateError: new_rate is outside [0, 1] or has more
                than 4 decimal places
        """
        rate = to_decimal(new_rate)
        _validate_fee_rate(rate)
        self.fee_rate = rate
        self.net_amount = calculate_net_amount(self.gross_amount, rate)

    def _decide(self, status: AnticipationStatus) -> None:
        self.status = status
        self.decision_at = utcnow()


def _validate_amount_precision(amount: Decimal) -> None:
    if decimal_places(amount) > AMOUNT_PLACES:
        raise InvalidAmountError()
    if amount.adjusted() + 1 > AMOUNT_DIGITS - AMOUNT_PLACES:
        raise InvalidAmountError(
            f"Requested amount must have at most {AMOUNT_DIGITS - AMOUNT_PLACES} integer digits."
        )


def _validate_fee_rate(rate: Decimal) -> None:
    if rate < 0 or rate > 1:
        raise InvalidFeeRateError()
    if decimal_places(rate) > FEE_RATE_PLACES:
        raise InvalidFeeRateError(
            f"Fee rate must have at most {FEE_RATE_PLACES} decimal places."
        )
