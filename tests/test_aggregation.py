"""Tests for the aggregation facade read model."""

import asyncio
from datetime import date, timedelta

import pytest

from onchain_budget.constants import TransactionType
from onchain_budget.utils.errors import TransportError, UpstreamError, ValidationError

from conftest import WALLET, make_transaction


def run(coro):
    return asyncio.run(coro)


def test_refresh_transactions_fetches_thirty_day_window(aggregator, bank_source):
    """Test the fixed 30-day window and 100-record limit."""
    run(aggregator.refresh_transactions("acc_1"))

    call = bank_source.calls[-1]
    assert call["limit"] == 100
    assert call["end"] == date.today()
    assert call["start"] == date.today() - timedelta(days=30)


def test_refresh_transactions_is_idempotent(aggregator):
    """Test repeated refreshes replace rather than append."""
    run(aggregator.refresh_transactions("acc_1"))
    first = list(aggregator.transactions)

    run(aggregator.refresh_transactions("acc_1"))

    assert aggregator.transactions == first
    assert [t.id for t in aggregator.transactions] == ["t1", "t2"]


def test_refresh_transactions_leaves_other_accounts(aggregator, bank_source):
    """Test refreshing one account never touches another's transactions."""
    run(aggregator.refresh_transactions("acc_1"))
    run(aggregator.refresh_transactions("acc_2"))

    bank_source.transactions["acc_1"] = [make_transaction("t9", "acc_1", 10.0)]
    run(aggregator.refresh_transactions("acc_1"))

    assert [t.id for t in aggregator.transactions_for("acc_2")] == ["t3"]
    assert [t.id for t in aggregator.transactions_for("acc_1")] == ["t9"]


def test_refresh_transactions_failure_keeps_prior_data(aggregator, bank_source):
    """Test a failed refresh records an error and keeps the previous set."""
    run(aggregator.refresh_transactions("acc_1"))
    bank_source.failing.add("acc_1")

    result = run(aggregator.refresh_transactions("acc_1"))

    assert [t.id for t in result] == ["t1", "t2"]
    assert "Failed to fetch transactions" in aggregator.error


def test_successful_refresh_clears_error(aggregator, bank_source):
    """Test the error string is cleared once a refresh succeeds."""
    bank_source.failing.add("acc_1")
    run(aggregator.refresh_transactions("acc_1"))
    assert aggregator.error is not None

    bank_source.failing.clear()
    run(aggregator.refresh_transactions("acc_1"))
    assert aggregator.error is None


def test_refresh_transactions_requires_account_id(aggregator):
    """Test a blank account id is a validation error."""
    with pytest.raises(ValidationError):
        run(aggregator.refresh_transactions(""))


def test_stale_transaction_refresh_is_discarded(aggregator, bank_source):
    """Test a slow superseded refresh cannot overwrite a newer result."""
    async def scenario():
        slow_started = asyncio.Event()
        release = asyncio.Event()
        original = bank_source.get_transactions
        calls = {"n": 0}

        async def get_transactions(account_id, start=None, end=None, limit=50):
            calls["n"] += 1
            if calls["n"] == 1:
                slow_started.set()
                await release.wait()
                return [make_transaction("old", account_id)]
            return await original(account_id, start=start, end=end, limit=limit)

        bank_source.get_transactions = get_transactions

        slow = asyncio.create_task(aggregator.refresh_transactions("acc_1"))
        await slow_started.wait()
        await aggregator.refresh_transactions("acc_1")
        release.set()
        await slow

    run(scenario())

    assert [t.id for t in aggregator.transactions_for("acc_1")] == ["t1", "t2"]


def test_partial_balance_failure_keeps_other_tokens(aggregator, chain_source):
    """Test 3 configured tokens with the 2nd failing yields the 1st and 3rd."""
    chain_source.failing.add("USDC")

    balances = run(aggregator.refresh_balances(WALLET, 1))

    assert [b.symbol for b in balances] == ["ETH", "USDT"]
    assert aggregator.error is None


def test_unexpected_token_exception_is_skipped(aggregator, chain_source):
    """Test a non-domain exception on the 2nd token still yields the 1st and 3rd."""
    fetch = chain_source.get_token_balance

    async def get_token_balance(address, chain_id, token):
        if token["symbol"] == "USDC":
            raise RuntimeError("boom")
        return await fetch(address, chain_id, token)

    chain_source.get_token_balance = get_token_balance

    balances = run(aggregator.refresh_balances(WALLET, 1))

    assert [b.symbol for b in balances] == ["ETH", "USDT"]
    assert [b.symbol for b in aggregator.token_balances] == ["ETH", "USDT"]


def test_cancelled_token_fetch_propagates(aggregator, chain_source):
    """Test cancellation is not mistaken for a token failure."""
    async def get_token_balance(address, chain_id, token):
        raise asyncio.CancelledError()

    chain_source.get_token_balance = get_token_balance

    with pytest.raises(asyncio.CancelledError):
        run(aggregator.refresh_balances(WALLET, 1))


def test_refresh_balances_unknown_chain_is_empty(aggregator):
    """Test a chain with no configured tokens yields an empty set."""
    assert run(aggregator.refresh_balances(WALLET, 8453)) == []


def test_refresh_balances_validates_address(aggregator):
    with pytest.raises(ValidationError):
        run(aggregator.refresh_balances("0xnotanaddress", 1))


def test_refresh_portfolio_runs_balances_first(aggregator):
    """Test the portfolio is derived from freshly fetched balances."""
    portfolio = run(aggregator.refresh_portfolio(WALLET, 1))

    assert len(aggregator.token_balances) == 3
    assert portfolio.total_value == pytest.approx(6251.5)
    assert aggregator.total_portfolio_value == pytest.approx(6251.5)
    assert aggregator.has_tokens


def test_refresh_identity_none_is_success(aggregator, identity_source):
    """Test an address without a profile is a successful None."""
    identity_source.profile = None

    assert run(aggregator.refresh_identity(WALLET)) is None
    assert aggregator.error is None


def test_refresh_identity_failure_keeps_profile(aggregator, identity_source):
    """Test an identity failure keeps the previous profile."""
    run(aggregator.refresh_identity(WALLET))
    identity_source.error = TransportError("ens", "connection reset")

    profile = run(aggregator.refresh_identity(WALLET))

    assert profile.name == "vitalik.eth"
    assert "Failed to fetch identity" in aggregator.error


def test_transaction_success_keeps_identity_error(aggregator, identity_source):
    """Test a successful refresh only clears the error its own entity recorded."""
    identity_source.error = TransportError("ens", "connection reset")
    run(aggregator.refresh_identity(WALLET))

    run(aggregator.refresh_transactions("acc_1"))

    assert "Failed to fetch identity" in aggregator.error

    identity_source.error = None
    run(aggregator.refresh_identity(WALLET))
    assert aggregator.error is None


def test_error_for_one_account_survives_another_accounts_refresh(aggregator, bank_source):
    bank_source.failing.add("acc_1")
    run(aggregator.refresh_transactions("acc_1"))

    run(aggregator.refresh_transactions("acc_2"))

    assert "Failed to fetch transactions" in aggregator.error


def test_refreshes_are_independent(aggregator, bank_source):
    """Test refreshing one entity does not invalidate the others."""
    run(aggregator.refresh_portfolio(WALLET, 1))
    run(aggregator.refresh_identity(WALLET))
    bank_source.failing.add("acc_1")

    run(aggregator.refresh_transactions("acc_1"))

    assert aggregator.portfolio is not None
    assert aggregator.identity is not None


def test_connect_bank_links_and_persists(aggregator, store):
    """Test the link callback adds the account, persists it and loads transactions."""
    account = run(aggregator.connect_bank("acc_1"))

    assert account.id == "acc_1"
    assert [a.id for a in aggregator.accounts] == ["acc_1"]
    assert [t.id for t in aggregator.transactions] == ["t1", "t2"]

    session = run(store.get_session(WALLET))
    assert [a["id"] for a in session.bank_accounts] == ["acc_1"]


def test_connect_bank_twice_does_not_duplicate(aggregator):
    run(aggregator.connect_bank("acc_1"))
    run(aggregator.connect_bank("acc_1"))

    assert [a.id for a in aggregator.accounts] == ["acc_1"]


def test_connect_bank_failure_raises_and_records_error(aggregator, bank_source):
    """Test an account that cannot be fetched is not linked."""
    bank_source.failing.add("acc_1")

    with pytest.raises(UpstreamError):
        run(aggregator.connect_bank("acc_1"))

    assert aggregator.accounts == []
    assert "Failed to connect bank account" in aggregator.error


def test_disconnect_purges_transactions_and_persisted_account(aggregator, store):
    """Test disconnect removes the account, its transactions and the persisted entry."""
    run(aggregator.connect_bank("acc_1"))
    run(aggregator.connect_bank("acc_2"))

    run(aggregator.disconnect_bank("acc_1"))

    assert [a.id for a in aggregator.accounts] == ["acc_2"]
    assert all(t.account_id != "acc_1" for t in aggregator.transactions)
    assert [t.id for t in aggregator.transactions] == ["t3"]
    session = run(store.get_session(WALLET))
    assert [a["id"] for a in session.bank_accounts] == ["acc_2"]


def test_load_saved_accounts(aggregator, store):
    """Test linked accounts are restored from the session blob."""
    from conftest import make_account

    run(store.save_bank_accounts(WALLET, [make_account("acc_1"), make_account("acc_2", balance=500.0)]))

    accounts = run(aggregator.load_saved_accounts())

    assert [a.id for a in accounts] == ["acc_1", "acc_2"]
    assert {t.id for t in aggregator.transactions} == {"t1", "t2", "t3"}
    assert aggregator.total_balance == 1500.0
    assert aggregator.connected_banks == 2


def test_load_saved_accounts_skips_malformed_entry(aggregator, store):
    """Test a corrupt stored account is recorded as an error and the rest restore."""
    from conftest import make_account

    run(store.save_bank_accounts(WALLET, [make_account("acc_2", balance=500.0)]))
    session = run(store.get_session(WALLET))
    session.session_data["bank_accounts"].append({"id": "acc_9", "balance": "not-a-number"})
    run(store._save_session(session))

    accounts = run(aggregator.load_saved_accounts())

    assert [a.id for a in accounts] == ["acc_2"]
    assert "Failed to restore saved bank account" in aggregator.error
    assert "Malformed bank_account record" in aggregator.error


def test_load_saved_accounts_without_session(aggregator):
    assert run(aggregator.load_saved_accounts()) == []


def test_spending_summary(aggregator, bank_source):
    """Test expense totals per category; income is excluded."""
    bank_source.transactions["acc_1"].append(
        make_transaction("t4", "acc_1", 500.0, category="Subscriptions")
    )

    summary = run(aggregator.get_spending_summary("acc_1"))

    assert summary == {"Subscriptions": 2000.0}


def test_spending_summary_failure_is_empty(aggregator, bank_source):
    bank_source.failing.add("acc_1")

    assert run(aggregator.get_spending_summary("acc_1")) == {}


def test_snapshot_is_a_copy(aggregator):
    """Test the snapshot is unaffected by later refreshes."""
    run(aggregator.connect_bank("acc_1"))
    snapshot = aggregator.snapshot()

    run(aggregator.disconnect_bank("acc_1"))

    assert [a.id for a in snapshot.accounts] == ["acc_1"]
    assert len(snapshot.transactions) == 2
    assert snapshot.total_spending == 1500.0
    assert aggregator.snapshot().accounts == []


def test_snapshot_recent_transactions_newest_first(aggregator):
    run(aggregator.connect_bank("acc_2"))
    run(aggregator.connect_bank("acc_1"))

    recent = aggregator.snapshot().recent_transactions(2)

    assert [t.id for t in recent] == ["t1", "t2"]


def test_total_spending_counts_expenses_only(aggregator):
    run(aggregator.connect_bank("acc_1"))

    expenses = [t for t in aggregator.transactions if t.type == TransactionType.EXPENSE]
    assert aggregator.total_spending == sum(t.amount for t in expenses) == 1500.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
