from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
# largest amount whose cent value still fits a signed 64-bit INTEGER column
MAX_AMOUNT = Decimal("999999999999.99")


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return quantize(Decimal(cents).scaleb(-2))


def parse_amount(value: str) -> Decimal:
    clean = value.strip().replace("₹", "").replace("$", "").replace(" ", "")
    clean = clean.replace(",", "")
    try:
        amount = Decimal(clean)
        if not amount.is_finite():
            raise ValueError("Invalid amount")
        if amount < 0:
            raise ValueError("Amount must be positive")
        if amount > MAX_AMOUNT:
            raise ValueError("Amount too large")
        return quantize(amount)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
