"""
Transaction and Account Snapshots

Read-only input records consumed by the forecast engine. The surrounding
application fetches these once per request and hands them over as a snapshot.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .date_utils import add_months, period_key
from .exceptions import InvalidTransactionError


class Direction(Enum):
    """Money flow direction of a transaction"""
    CREDIT = "credit"   # Inflow
    DEBIT = "debit"     # Outflow


def parse_date(value: Any, field_name: str = "date") -> date:
    """Coerce an ISO string, date or datetime into a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        # Full timestamps only; trailing text after the date is rejected
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidTransactionError(f"Malformed {field_name}: {value!r}")
    raise InvalidTransactionError(f"Malformed {field_name}: {value!r}")


def parse_direction(value: Any) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise InvalidTransactionError(
            f"Unknown direction {value!r}, expected 'credit' or 'debit'"
        )


@dataclass(frozen=True)
class TransactionRecord:
    """A single historical transaction. Amount is always a non-negative magnitude."""
    account_id: int
    date: date
    description: str
    amount: float
    direction: Direction
    category_id: Optional[int] = None
    vendor: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.date, date) or isinstance(self.date, datetime):
            raise InvalidTransactionError(f"Malformed date: {self.date!r}")
        if not isinstance(self.direction, Direction):
            raise InvalidTransactionError(f"Unknown direction: {self.direction!r}")
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise InvalidTransactionError(f"Amount must be numeric, got {self.amount!r}")
        if not math.isfinite(self.amount):
            raise InvalidTransactionError(f"Amount must be finite, got {self.amount!r}")
        if self.amount < 0:
            raise InvalidTransactionError(
                f"Negative amount {self.amount} for '{self.description}' on {self.date}"
            )

    @property
    def is_credit(self) -> bool:
        return self.direction is Direction.CREDIT

    @property
    def period_key(self) -> str:
        return period_key(self.date)

    @property
    def signed_amount(self) -> float:
        return self.amount if self.is_credit else -self.amount

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        """
        Build a record from a plain mapping.

        Accepts ``direction`` or the legacy ``type`` key and ISO date strings.
        """
        if "date" not in data:
            raise InvalidTransactionError("Transaction is missing 'date'")
        direction = data.get("direction", data.get("type"))
        if direction is None:
            raise InvalidTransactionError("Transaction is missing 'direction'")
        amount = data.get("amount")
        if isinstance(amount, str):
            try:
                amount = float(amount)
            except ValueError:
                raise InvalidTransactionError(f"Amount must be numeric, got {amount!r}")
        category_id = data.get("category_id")
        if category_id:
            try:
                category_id = int(category_id)
            except (TypeError, ValueError):
                raise InvalidTransactionError(
                    f"category_id must be an integer, got {category_id!r}"
                )
        return cls(
            account_id=data.get("account_id", 0),
            date=parse_date(data["date"]),
            description=str(data.get("description", "")),
            amount=amount,
            direction=parse_direction(direction),
            category_id=category_id or None,
            vendor=data.get("vendor"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": self.amount,
            "direction": self.direction.value,
            "category_id": self.category_id,
            "vendor": self.vendor,
        }


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range of historical data"""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidTransactionError(
                f"Window start {self.start} is after end {self.end}"
            )

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def trailing_months(cls, as_of: date, months: int) -> "DateWindow":
        """Window covering the given number of months up to and including as_of"""
        return cls(start=add_months(as_of, -max(months, 0)), end=as_of)


@dataclass(frozen=True)
class AccountSnapshot:
    """Account balance as of the forecast anchor date"""
    account_id: int
    balance: float
    name: str = ""
    currency: str = "USD"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "name": self.name,
            "balance": self.balance,
            "currency": self.currency,
        }


TransactionLike = Union[TransactionRecord, Mapping[str, Any]]


def coerce_transaction(item: TransactionLike) -> TransactionRecord:
    """Accept records or plain mappings, rejecting anything else"""
    if isinstance(item, TransactionRecord):
        return item
    if isinstance(item, Mapping):
        return TransactionRecord.from_dict(item)
    raise InvalidTransactionError(f"Unsupported transaction type: {type(item).__name__}")
