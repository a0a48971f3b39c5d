from __future__ import annotations

from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation

_CTX = Context(prec=100)


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_raw_amount(amount_tokens: str | int | float | Decimal, decimals: int) -> int:
    """Human token amount -> base units, truncating extra precision."""
    try:
        amt = _to_decimal(amount_tokens)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount_tokens}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid token amount: {amount_tokens}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    scaled = _CTX.multiply(amt, _CTX.power(Decimal(10), int(decimals)))
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(amount_raw: int, decimals: int) -> Decimal:
    """Base units -> human token amount (exact)."""
    return _CTX.scaleb(Decimal(int(amount_raw)), -int(decimals))


def try_parse_positive_raw(
    amount_tokens: str | int | float | Decimal | None, decimals: int
) -> int | None:
    """Base units for a user-typed amount, or None when it is empty, invalid or zero."""
    if amount_tokens is None:
        return None
    try:
        raw = to_raw_amount(amount_tokens, decimals)
    except ValueError:
        return None
    return raw if raw > 0 else None
