"""
recurring_detector.py
----------------------
Recurring transaction detection.

Answers one question per group of look-alike transactions: "does this repeat
on a weekly or monthly rhythm?"

Two detectors share the same gap analysis:
    - detect(): strict fingerprint (exact description + exact amount), any
      direction, weekly/monthly only. Feeds forecast confidence.
    - detect_bills(): debits only, fuzzy fingerprint (description without
      digits, amount rounded half up to whole units), the full bill
      frequency table.
      Produces bill suggestions for the bill manager.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..bills.frequency import Frequency, detect_frequency
from ..transactions import Direction, TransactionLike, TransactionRecord, coerce_transaction

logger = logging.getLogger(__name__)


class RecurrenceFrequency(Enum):
    """Cadence of a recurring transaction group"""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


@dataclass(frozen=True)
class RecurrencePattern:
    """
    A recurring transaction group.

    Produced for each (description, amount) fingerprint with at least three
    occurrences whose average spacing falls in the weekly or monthly band.
    """

    # Identity
    description: str
    amount: float
    direction: Direction

    # Cadence
    occurrence_dates: Tuple[date, ...]
    average_interval_days: float
    frequency: RecurrenceFrequency
    confidence: float                 # 0.0 - 1.0, saturates at 6 occurrences

    def __post_init__(self):
        if len(self.occurrence_dates) < 3:
            raise ValueError(
                f"A recurrence needs at least 3 occurrences, got {len(self.occurrence_dates)}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    @property
    def fingerprint(self) -> Tuple[str, float]:
        return (self.description, self.amount)

    @property
    def occurrences(self) -> int:
        return len(self.occurrence_dates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "amount": self.amount,
            "type": self.direction.value,
            "frequency": self.frequency.value,
            "confidence": round(self.confidence, 4),
            "occurrences": self.occurrences,
            "average_interval_days": round(self.average_interval_days, 2),
            "occurrence_dates": [d.isoformat() for d in self.occurrence_dates],
        }


@dataclass(frozen=True)
class BillSuggestion:
    """A debit series that looks like a bill, ready to be offered to the user"""

    description: str
    suggested_name: str
    amount: float
    frequency: Frequency
    due_day: int
    occurrences: int
    confidence: float
    auto_detect_pattern: str
    last_seen: date
    category_id: Optional[int] = None
    account_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "suggested_name": self.suggested_name,
            "amount": self.amount,
            "frequency": self.frequency.value,
            "due_day": self.due_day,
            "category_id": self.category_id,
            "account_id": self.account_id,
            "occurrences": self.occurrences,
            "confidence": self.confidence,
            "auto_detect_pattern": self.auto_detect_pattern,
            "last_seen": self.last_seen.isoformat(),
        }


# Noise stripped from bank descriptions when naming a bill
BILL_NAME_NOISE = [
    (re.compile(r"\bDD\b", re.IGNORECASE), ""),
    (re.compile(r"\bDIRECT DEBIT\b", re.IGNORECASE), ""),
    (re.compile(r"\bSTANDING ORDER\b", re.IGNORECASE), ""),
    (re.compile(r"\bPAYMENT\b", re.IGNORECASE), ""),
    (re.compile(r"\b(LTD|LIMITED|PLC|INC)\b", re.IGNORECASE), ""),
    (re.compile(r"\s+"), " "),
]


def normalize_description(description: str) -> str:
    """Lower-case description with digits removed and whitespace collapsed"""
    normalized = re.sub(r"\d+", "", description)
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip().lower()


def generate_bill_name(description: str) -> str:
    """Readable bill name from a raw bank description"""
    name = description
    for pattern, replacement in BILL_NAME_NOISE:
        name = pattern.sub(replacement, name)
    return name.strip().lower().title()


def generate_pattern(description: str) -> str:
    """First three meaningful words of a description, used to match future transactions"""
    pattern = re.sub(r"\d+", "", description)
    pattern = re.sub(r"\s+", " ", pattern).strip()
    words = [w for w in pattern.split(" ") if len(w) > 2]
    return " ".join(words[:3])


def interval_days(dates: List[date]) -> List[int]:
    """Day gaps between consecutive dates (dates must be sorted)"""
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


class RecurringPatternDetector:
    """
    Detects recurring payment and income patterns in transaction history.

    Usage:
        detector = RecurringPatternDetector()
        patterns = detector.detect(transactions)
        suggestions = detector.detect_bills(transactions)
    """

    def __init__(
        self,
        min_occurrences: int = 3,
        saturation_occurrences: int = 6,
        monthly_band: Tuple[float, float] = (25, 35),
        weekly_band: Tuple[float, float] = (6, 8),
        interval_spread_limit: float = 5.0,
        amount_spread_ratio: float = 0.1
    ):
        self.min_occurrences = min_occurrences
        self.saturation_occurrences = saturation_occurrences
        self.monthly_band = monthly_band
        self.weekly_band = weekly_band
        self.interval_spread_limit = interval_spread_limit
        self.amount_spread_ratio = amount_spread_ratio

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def detect(self, transactions: Iterable[TransactionLike]) -> List[RecurrencePattern]:
        """
        Find weekly and monthly recurring transactions.

        Args:
            transactions: Transactions in any order

        Returns:
            One RecurrencePattern per qualifying (description, amount) group,
            in order of the group's first appearance.
        """
        groups: Dict[Tuple[str, float], List[TransactionRecord]] = {}
        for item in transactions:
            record = coerce_transaction(item)
            groups.setdefault((record.description, record.amount), []).append(record)

        patterns = []
        for (description, amount), group in groups.items():
            if len(group) < self.min_occurrences:
                continue

            pattern = self._build_pattern(description, amount, group)
            if pattern is not None:
                patterns.append(pattern)

        return patterns

    def classify_interval(self, average_interval: float) -> RecurrenceFrequency:
        """Monthly band is checked before the weekly band"""
        low, high = self.monthly_band
        if low <= average_interval <= high:
            return RecurrenceFrequency.MONTHLY
        low, high = self.weekly_band
        if low <= average_interval <= high:
            return RecurrenceFrequency.WEEKLY
        return RecurrenceFrequency.NONE

    def occurrence_confidence(self, occurrences: int) -> float:
        return min(occurrences / self.saturation_occurrences, 1.0)

    def detect_bills(self, transactions: Iterable[TransactionLike]) -> List[BillSuggestion]:
        """
        Suggest bills from recurring debits.

        Groups debits by normalised description and rounded amount, classifies
        the average gap with the bill frequency table, and lowers confidence
        for irregular gaps or drifting amounts.

        Returns:
            BillSuggestions sorted by confidence, highest first.
        """
        groups: Dict[Tuple[str, int], List[TransactionRecord]] = {}
        for item in transactions:
            record = coerce_transaction(item)
            if record.direction is not Direction.DEBIT:
                continue
            key = (normalize_description(record.description), math.floor(record.amount + 0.5))
            groups.setdefault(key, []).append(record)

        suggestions = []
        for group in groups.values():
            if len(group) < self.min_occurrences:
                continue

            suggestion = self._build_bill_suggestion(group)
            if suggestion is not None:
                suggestions.append(suggestion)

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions

    # -------------------------------------------------------------------------
    # INTERNAL: PATTERN CONSTRUCTION
    # -------------------------------------------------------------------------

    def _build_pattern(
        self,
        description: str,
        amount: float,
        group: List[TransactionRecord]
    ) -> Optional[RecurrencePattern]:
        dates = sorted(t.date for t in group)
        gaps = interval_days(dates)
        average_interval = float(np.mean(gaps))

        frequency = self.classify_interval(average_interval)
        if frequency is RecurrenceFrequency.NONE:
            logger.debug(
                f"Discarding '{description}' ({amount}): average interval {average_interval:.1f} days"
            )
            return None

        return RecurrencePattern(
            description=description,
            amount=amount,
            direction=group[0].direction,
            occurrence_dates=tuple(dates),
            average_interval_days=average_interval,
            frequency=frequency,
            confidence=self.occurrence_confidence(len(group)),
        )

    def _build_bill_suggestion(self, group: List[TransactionRecord]) -> Optional[BillSuggestion]:
        ordered = sorted(group, key=lambda t: t.date)
        dates = [t.date for t in ordered]
        gaps = interval_days(dates)
        average_interval = float(np.mean(gaps))

        frequency = detect_frequency(average_interval)
        if frequency is None:
            return None

        amounts = [t.amount for t in group]
        average_amount = float(np.mean(amounts))

        confidence = self.occurrence_confidence(len(group))
        if float(np.std(gaps)) > self.interval_spread_limit:
            confidence *= 0.8
        if float(np.std(amounts)) > average_amount * self.amount_spread_ratio:
            confidence *= 0.9

        first = group[0]
        return BillSuggestion(
            description=first.description,
            suggested_name=generate_bill_name(first.description),
            amount=round(average_amount, 2),
            frequency=frequency,
            due_day=int(round(float(np.mean([d.day for d in dates])))),
            occurrences=len(group),
            confidence=round(confidence, 2),
            auto_detect_pattern=generate_pattern(first.description),
            last_seen=dates[-1],
            category_id=first.category_id,
            account_id=first.account_id,
        )


def detect_recurring_patterns(transactions: Iterable[TransactionLike]) -> List[RecurrencePattern]:
    """Weekly/monthly recurring patterns of exact (description, amount) groups."""
    return RecurringPatternDetector().detect(transactions)


def detect_recurring_bills(transactions: Iterable[TransactionLike]) -> List[BillSuggestion]:
    """Bill suggestions from recurring debits."""
    return RecurringPatternDetector().detect_bills(transactions)
