from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from amounts import MAX_AMOUNT, parse_amount, quantize
from models import TransactionType
from periods import normalize_month
from rollups import RollupStatus


def _coerce_amount(value: object) -> object:
    if isinstance(value, str):
        return parse_amount(value)
    return value


def _quantize_amount(value: Decimal) -> Decimal:
    try:
        return quantize(value)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc


Amount = Annotated[
    Decimal,
    Field(ge=0, le=MAX_AMOUNT),
    BeforeValidator(_coerce_amount),
    AfterValidator(_quantize_amount),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# sums of many amounts may exceed a single amount's bound
Total = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class TransactionIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Amount
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    date: date

    @field_validator("description", "category")
    @classmethod
    def _strip(cls, value: str) -> str:
        clean = value.strip()
        if not clean:
            raise ValueError("must not be blank")
        return clean


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Amount
    type: TransactionType
    category: str
    date: date


class BudgetIn(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    amount: Amount
    month: str
    year: int = Field(..., ge=1970, le=3000)

    @field_validator("category")
    @classmethod
    def _strip(cls, value: str) -> str:
        clean = value.strip()
        if not clean:
            raise ValueError("must not be blank")
        return clean

    @field_validator("month")
    @classmethod
    def _month(cls, value: str) -> str:
        return normalize_month(value)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    amount: Amount
    month: str
    year: int


class RollupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    budget_id: int
    category: str
    display_category: str
    budgeted: Amount
    spent: Total
    remaining: Amount
    over_by: Total
    status: RollupStatus
    percent_used: float


class PeriodTotalsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    income: Total
    expenses: Total
    balance: Total


class PeriodOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str
    year: int


class RollupReport(BaseModel):
    period: PeriodOut
    rollups: list[RollupOut]
    totals: PeriodTotalsOut
