"""Mono record -> BankAccount / BankTransaction"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from onchain_budget.constants import CATEGORY_RULES, DEFAULT_CATEGORY, TransactionType
from onchain_budget.models import BankAccount, BankTransaction
from onchain_budget.utils.errors import NormalizationError


def categorize_transaction(description: Optional[str]) -> str:
    """
    Keyword categorization of a transaction narration.

    Case-insensitive substring scan over CATEGORY_RULES; the first rule
    with a matching keyword wins, no match yields "Other".
    """
    text = (description or "").lower()
    for keywords, category in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def normalize_account(payload: Dict[str, Any], synced_at: Optional[datetime] = None) -> BankAccount:
    """
    Build a BankAccount from the provider's account response.

    Args:
        payload: Either {"account": {...}} or the account object itself
        synced_at: Sync timestamp (defaults to now)

    Raises:
        NormalizationError: If id or name is missing
    """
    account = payload.get("account", payload) if isinstance(payload, dict) else None
    if not isinstance(account, dict):
        raise NormalizationError("account", ["account"])

    account_id = account.get("id") or account.get("_id")
    missing = [name for name, value in (("id", account_id), ("name", account.get("name"))) if not value]
    if missing:
        raise NormalizationError("account", missing)

    institution = account.get("institution") or {}

    try:
        return BankAccount(
            id=str(account_id),
            name=account["name"],
            type=account.get("type") or "",
            balance=float(account.get("balance") or 0),
            currency=account.get("currency") or "NGN",
            account_number=account.get("accountNumber") or "",
            bank_name=institution.get("name") or "",
            is_connected=True,
            last_synced=synced_at or datetime.now(),
        )
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise NormalizationError("account", [str(e)])


def normalize_transaction(record: Dict[str, Any], account_id: str) -> BankTransaction:
    """
    Build a BankTransaction from one provider transaction.

    The signed provider amount becomes an absolute amount plus a direction;
    "credit" is income, everything else is an expense.

    Raises:
        NormalizationError: If id, amount or date is missing
    """
    if not isinstance(record, dict):
        raise NormalizationError("transaction", ["record"])

    txn_id = record.get("id") or record.get("_id")
    required = (("id", txn_id), ("amount", record.get("amount")), ("date", record.get("date")))
    missing = [name for name, value in required if value is None or value == ""]
    if missing:
        raise NormalizationError("transaction", missing)

    description = record.get("narration") or record.get("description") or ""
    txn_type = TransactionType.INCOME if record.get("type") == "credit" else TransactionType.EXPENSE

    try:
        return BankTransaction(
            id=str(txn_id),
            account_id=account_id,
            amount=abs(float(record["amount"])),
            type=txn_type,
            category=categorize_transaction(description),
            description=description,
            date=record["date"],
            currency=record.get("currency"),
            balance=record.get("balance"),
            reference=record.get("reference"),
        )
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise NormalizationError("transaction", [str(e)])


def normalize_transactions(payload: Any, account_id: str) -> List[BankTransaction]:
    """
    Normalize a provider transaction page.

    Args:
        payload: {"data": [...]} or a bare list of records
        account_id: Owning account, stamped on every transaction

    Raises:
        NormalizationError: If the page has no data list or a record is malformed
    """
    records = payload.get("data") if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise NormalizationError("transaction page", ["data"])
    return [normalize_transaction(record, account_id) for record in records]
