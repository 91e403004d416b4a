"""Application tests for the Ledger: postings, withdrawals, consistency checks and adjustments."""

from decimal import Decimal

import pytest
from ledger.wallet.wallet import CourierWallet
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from shared.exceptions import InvalidState, LedgerInconsistency


def _tamper_balance(courier_id, balance):
    wallets = current_domain.repository_for(CourierWallet)
    wallet = wallets.get_by_courier(courier_id)
    wallet.balance = Decimal(balance)
    wallets.add(wallet)


class TestPosting:
    def test_first_posting_creates_wallet(self, services):
        entry = services.ledger.post("courier-1", "TIP", "3.00", reference="tip-1")

        assert entry.sequence == 1
        assert entry.balance_before == Decimal("0")
        assert entry.balance_after == Decimal("3.00")
        assert services.ledger.totals("courier-1").balance == Decimal("3.00")

    def test_history_is_newest_first(self, services):
        services.ledger.post("courier-1", "TIP", "3.00")
        services.ledger.post("courier-1", "BONUS", "2.00")
        services.ledger.post("courier-1", "FINE", "1.00")

        history = services.ledger.history("courier-1")

        assert [e.kind for e in history] == ["FINE", "BONUS", "TIP"]
        assert [e.kind for e in services.ledger.history("courier-1", limit=1)] == ["FINE"]
        assert services.ledger.totals("courier-1").balance == Decimal("4.00")

    def test_invalid_amount_creates_no_wallet(self, services):
        with pytest.raises(ValidationError):
            services.ledger.post("courier-1", "TIP", "0")

        with pytest.raises(ObjectNotFoundError):
            services.ledger.totals("courier-1")

    def test_duplicate_fee_for_order_is_rejected(self, services):
        services.ledger.post("courier-1", "DELIVERY_FEE", "9.79", order_id="order-1")

        with pytest.raises(InvalidState):
            services.ledger.post("courier-1", "DELIVERY_FEE", "9.79", order_id="order-1")
        assert services.ledger.totals("courier-1").entry_count == 1

    def test_signed_adjustment(self, services):
        services.ledger.post("courier-1", "TIP", "5.00")
        entry = services.ledger.post("courier-1", "ADJUSTMENT", "-1.25", description="Correction")

        assert entry.signed_amount == Decimal("-1.25")
        assert services.ledger.totals("courier-1").balance == Decimal("3.75")

    def test_verify_walks_the_chain(self, services):
        for amount in ("1.00", "2.00", "3.00"):
            services.ledger.post("courier-1", "TIP", amount)

        assert services.ledger.verify("courier-1") == 3


class TestConcurrentFirstPosting:
    def test_racing_first_posts_open_a_single_wallet(self, services, run_concurrently):
        outcomes = run_concurrently(
            lambda reference: services.ledger.post("courier-new", "TIP", "2.00", reference=reference),
            ["tip-a", "tip-b"],
        )

        failures = [outcome for _, outcome in outcomes if isinstance(outcome, Exception)]
        # the losing insert surfaces as a version conflict, never a raw database error
        assert all(isinstance(failure, ExpectedVersionError) for failure in failures), failures
        posted = len(outcomes) - len(failures)
        assert posted >= 1

        wallets = current_domain.repository_for(CourierWallet).query.filter(courier_id="courier-new").all()
        assert wallets.total == 1
        totals = services.ledger.totals("courier-new")
        assert totals.entry_count == posted
        assert totals.balance == Decimal("2.00") * posted
        assert services.ledger.verify("courier-new") == posted


class TestWithdrawal:
    def test_withdraw_within_balance(self, services):
        services.ledger.post("courier-1", "DELIVERY_FEE", "10.00")

        entry = services.ledger.withdraw("courier-1", "7.50")

        assert entry.signed_amount == Decimal("-7.50")
        totals = services.ledger.totals("courier-1")
        assert totals.balance == Decimal("2.50")
        assert totals.total_withdrawn == Decimal("7.50")

    def test_withdraw_more_than_balance(self, services):
        services.ledger.post("courier-1", "DELIVERY_FEE", "10.00")

        with pytest.raises(InvalidState) as exc_info:
            services.ledger.withdraw("courier-1", "10.01")

        assert "Insufficient balance" in str(exc_info.value)
        assert services.ledger.totals("courier-1").balance == Decimal("10.00")


class TestConsistency:
    def test_tampered_balance_aborts_posting(self, services):
        services.ledger.post("courier-1", "TIP", "3.00")
        _tamper_balance("courier-1", "50.00")

        with pytest.raises(LedgerInconsistency):
            services.ledger.post("courier-1", "TIP", "1.00")

        assert len(services.ledger.history("courier-1")) == 1
        assert services.ledger.totals("courier-1").balance == Decimal("50.00")

    def test_verify_detects_tampering(self, services):
        services.ledger.post("courier-1", "TIP", "3.00")
        _tamper_balance("courier-1", "50.00")

        with pytest.raises(LedgerInconsistency):
            services.ledger.verify("courier-1")


class TestAdjustments:
    def test_bonus_and_fine_wait_until_applied(self, services):
        services.adjustments.add_bonus("courier-1", "5.00", "Top rated")
        services.adjustments.add_fine("courier-1", "2.00", "Late")

        pending = services.adjustments.pending("courier-1")

        assert sorted(a.kind for a in pending) == ["BONUS", "FINE"]
        with pytest.raises(ObjectNotFoundError):
            services.ledger.totals("courier-1")

    def test_apply_pending_posts_and_marks_applied(self, services):
        bonus = services.adjustments.add_bonus("courier-1", "5.00", "Top rated")

        applied = services.adjustments.apply_pending("courier-1")

        assert [a.id for a in applied] == [bonus.id]
        assert applied[0].applied is True
        (entry,) = services.ledger.history("courier-1")
        assert applied[0].reference == entry.id
        assert entry.reference == f"adjustment:{bonus.id}"
        assert services.adjustments.apply_pending("courier-1") == []

    def test_adjustment_amount_must_be_positive(self, services):
        with pytest.raises(ValidationError):
            services.adjustments.add_fine("courier-1", "-2.00", "Late")
