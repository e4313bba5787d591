"""Balance formatting, TokenBalance and Portfolio derivation"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Dict, Iterable, Optional

from onchain_budget.constants import BALANCE_DISPLAY_DECIMALS
from onchain_budget.models import Portfolio, TokenBalance
from onchain_budget.utils.errors import NormalizationError

_QUANTUM = Decimal(1).scaleb(-BALANCE_DISPLAY_DECIMALS)


def format_balance(raw_balance: str, decimals: int) -> str:
    """
    raw / 10**decimals with fixed display precision.

    >>> format_balance("1500000", 6)
    '1.500000'
    """
    try:
        raw = Decimal(int(str(raw_balance)))
    except (TypeError, ValueError, InvalidOperation):
        raise NormalizationError("token balance", ["balance"])
    if decimals is None or int(decimals) < 0:
        raise NormalizationError("token balance", ["decimals"])

    value = (raw.scaleb(-int(decimals))).quantize(_QUANTUM, rounding=ROUND_DOWN)
    return f"{value:.{BALANCE_DISPLAY_DECIMALS}f}"


def normalize_token_balance(
    token: Dict[str, Any],
    raw_balance: str,
    decimals: Optional[int] = None,
    price: Optional[float] = None,
    change_24h: Optional[float] = None,
) -> TokenBalance:
    """
    Build a TokenBalance from a configured token and a fetched raw balance.

    Args:
        token: Token config entry (address, symbol, name, decimals, is_native, price_usd)
        raw_balance: Integer string in base units
        decimals: Decimals reported by the chain (falls back to the config)
        price: USD price (falls back to the config's price_usd)
        change_24h: 24h change in percent

    Raises:
        NormalizationError: If symbol/name/decimals are missing or the balance is not an integer
    """
    missing = [field for field in ("symbol", "name") if not token.get(field)]
    decimals = decimals if decimals is not None else token.get("decimals")
    if decimals is None:
        missing.append("decimals")
    if missing:
        raise NormalizationError("token", missing)

    balance_formatted = format_balance(raw_balance, decimals)
    price = price if price is not None else token.get("price_usd")

    value = None
    if price is not None:
        value = max(float(Decimal(balance_formatted) * Decimal(str(price))), 0.0)

    return TokenBalance(
        address="" if token.get("is_native") else token.get("address", ""),
        symbol=token["symbol"],
        name=token["name"],
        balance=str(int(str(raw_balance))),
        balance_formatted=balance_formatted,
        decimals=int(decimals),
        is_native=bool(token.get("is_native")),
        price=price,
        change_24h=change_24h,
        value=value,
    )


def build_portfolio(tokens: Iterable[TokenBalance]) -> Portfolio:
    """
    Pure derivation of portfolio totals from a balance set.

    Total value is the sum of non-negative token values (missing values
    count as zero). The 24h change is value-weighted over tokens that
    report one.
    """
    tokens = list(tokens)
    total_value = sum(max(token.value or 0.0, 0.0) for token in tokens)

    weighted = sum(
        (token.value or 0.0) * token.change_24h
        for token in tokens
        if token.change_24h is not None
    )
    total_change_24h = weighted / total_value if total_value > 0 else 0.0

    return Portfolio(
        total_value=total_value,
        total_change_24h=total_change_24h,
        tokens=tokens,
    )
