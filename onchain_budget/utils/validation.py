"""Identifier validation shared by gateways and routes"""

import re

from .errors import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address) -> bool:
    """True for a 0x-prefixed 20-byte hex address (case-insensitive)."""
    return isinstance(address, str) and ADDRESS_PATTERN.fullmatch(address) is not None


def require_address(address, field: str = "address") -> str:
    """
    Validate an EVM address before it reaches a provider.

    Raises:
        ValidationError: If the address is missing or malformed
    """
    if not address:
        raise ValidationError(f"{field} is required")
    if not is_valid_address(address):
        raise ValidationError("Invalid address format")
    return address


def require_account_id(account_id) -> str:
    """
    Validate a bank account id.

    Raises:
        ValidationError: If the id is missing or blank
    """
    if not account_id or not str(account_id).strip():
        raise ValidationError("Account ID is required")
    return str(account_id).strip()
