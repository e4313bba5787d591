"""Chart series derived from the read model"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from onchain_budget.constants import TransactionType
from onchain_budget.models import BankTransaction, TokenBalance


def _transactions_frame(transactions: Iterable[BankTransaction]) -> pd.DataFrame:
    df = pd.DataFrame([txn.model_dump() for txn in transactions])
    if df.empty:
        return df
    df['date'] = pd.to_datetime(df['date'], utc=True).dt.tz_localize(None)
    df['type'] = df['type'].map(lambda t: t.value if isinstance(t, TransactionType) else t)
    return df


def category_breakdown(transactions: Iterable[BankTransaction]) -> List[Dict[str, Any]]:
    """
    Expense totals per category, largest first.

    Returns:
        [{'category': 'Food & Dining', 'amount': 4200.0, 'count': 3, 'percentage': 61.8}, ...]
    """
    df = _transactions_frame(transactions)
    if df.empty:
        return []

    expenses = df[df['type'] == TransactionType.EXPENSE.value]
    if expenses.empty:
        return []

    grouped = (
        expenses.groupby('category')['amount']
        .agg(['sum', 'count'])
        .reset_index()
        .sort_values(['sum', 'category'], ascending=[False, True])
    )
    total = grouped['sum'].sum()

    return [
        {
            'category': row['category'],
            'amount': round(float(row['sum']), 2),
            'count': int(row['count']),
            'percentage': round(float(row['sum']) / total * 100, 1) if total else 0.0,
        }
        for _, row in grouped.iterrows()
    ]


def daily_trend(
    transactions: Iterable[BankTransaction],
    days: int = 30,
    today: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Income and expense totals per day over the trailing window, oldest first.

    Only days with at least one transaction appear.

    Returns:
        [{'date': '2025-02-03', 'income': 0.0, 'expense': 1500.0}, ...]
    """
    df = _transactions_frame(transactions)
    if df.empty:
        return []

    today = pd.Timestamp(today or datetime.now()).normalize()
    cutoff = today - pd.Timedelta(days=days - 1)
    df = df[df['date'].dt.normalize() >= cutoff].copy()
    if df.empty:
        return []

    df['day'] = df['date'].dt.strftime('%Y-%m-%d')
    pivot = df.pivot_table(index='day', columns='type', values='amount', aggfunc='sum', fill_value=0.0)

    return [
        {
            'date': day,
            'income': round(float(row.get(TransactionType.INCOME.value, 0.0)), 2),
            'expense': round(float(row.get(TransactionType.EXPENSE.value, 0.0)), 2),
        }
        for day, row in pivot.sort_index().iterrows()
    ]


def monthly_spending(
    transactions: Iterable[BankTransaction],
    months: int = 12
) -> List[Dict[str, Any]]:
    """
    Expense totals per calendar month, most recent `months` months, oldest first.

    Returns:
        [{'month': '2025-01', 'amount': 38000.0}, ...]
    """
    df = _transactions_frame(transactions)
    if df.empty:
        return []

    expenses = df[df['type'] == TransactionType.EXPENSE.value].copy()
    if expenses.empty:
        return []

    expenses['month'] = expenses['date'].dt.strftime('%Y-%m')
    totals = expenses.groupby('month')['amount'].sum().sort_index().tail(months)

    return [{'month': month, 'amount': round(float(amount), 2)} for month, amount in totals.items()]


def token_allocation(tokens: Iterable[TokenBalance]) -> List[Dict[str, Any]]:
    """
    Portfolio share per token with a positive value, largest first.

    Returns:
        [{'symbol': 'ETH', 'value': 3100.0, 'percentage': 92.5}, ...]
    """
    df = pd.DataFrame([{'symbol': t.symbol, 'value': t.value or 0.0} for t in tokens])
    if df.empty:
        return []

    df = df[df['value'] > 0].sort_values(['value', 'symbol'], ascending=[False, True])
    total = df['value'].sum()

    return [
        {
            'symbol': row['symbol'],
            'value': round(float(row['value']), 2),
            'percentage': round(float(row['value']) / total * 100, 1),
        }
        for _, row in df.iterrows()
    ]


def build_chart_data(transactions: List[BankTransaction], tokens: List[TokenBalance]) -> Dict[str, Any]:
    """All chart series for the dashboard in one payload."""
    return {
        'spending_by_category': category_breakdown(transactions),
        'daily_trend': daily_trend(transactions),
        'monthly_spending': monthly_spending(transactions),
        'token_allocation': token_allocation(tokens),
    }
