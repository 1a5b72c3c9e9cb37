from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Iterator, Optional, TypeVar
from zoneinfo import ZoneInfo

from config import get_settings

# English names regardless of the process locale
MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

T = TypeVar("T")


def month_name(d: date) -> str:
    return MONTH_NAMES[d.month - 1]


def normalize_month(month: str) -> str:
    clean = (month or "").strip().lower()
    if clean not in MONTH_NAMES:
        raise ValueError(f"Unknown month: {month!r}")
    return clean


@dataclass(frozen=True)
class Period:
    month: str
    year: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "month", normalize_month(self.month))

    @property
    def month_number(self) -> int:
        return MONTH_NAMES.index(self.month) + 1

    def contains(self, d: date) -> bool:
        return d.year == self.year and month_name(d) == self.month


class PeriodSelection:
    """Transactions dated inside one period.

    Filtering happens on iteration, so the selection can be walked any
    number of times and always reflects the source it wraps.
    """

    def __init__(self, transactions: Iterable[T], month: str, year: int) -> None:
        self._transactions = transactions
        self._month = (month or "").strip().lower()
        self._year = year

    def __iter__(self) -> Iterator[T]:
        for txn in self._transactions:
            if txn.date.year == self._year and month_name(txn.date) == self._month:
                yield txn


def select(transactions: Iterable[T], month: str, year: int) -> PeriodSelection:
    return PeriodSelection(transactions, month, year)


def current_period(today: Optional[date] = None) -> Period:
    if today is None:
        today = datetime.now(ZoneInfo(get_settings().timezone)).date()
    return Period(month_name(today), today.year)


def resolve_period(
    month: Optional[str],
    year: Optional[int],
    *,
    today: Optional[date] = None,
) -> Period:
    fallback = current_period(today)
    if not month and year is None:
        return fallback
    return Period(month or fallback.month, fallback.year if year is None else year)
