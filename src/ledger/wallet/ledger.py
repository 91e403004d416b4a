"""Ledger: append-only money movements with a verifiable running balance.

Every posting re-checks that the wallet balance still equals the last entry's
``balance_after`` before writing. A mismatch means earlier corruption and
aborts the enclosing unit of work; nothing here ever repairs a balance.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog
from protean import UnitOfWork
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from ledger.wallet.wallet import CourierWallet, LedgerEntry, TransactionKind, coerce_kind, signed_amount
from shared.clock import SystemClock
from shared.exceptions import ConcurrentModification, InvalidState, LedgerInconsistency
from shared.money import ZERO, to_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WalletTotals:
    courier_id: str
    balance: Decimal
    total_earned: Decimal
    total_withdrawn: Decimal
    total_bonuses: Decimal
    total_fines: Decimal
    entry_count: int
    updated_at: datetime


class Ledger:
    def __init__(self, clock=None):
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def post(
        self,
        courier_id: str,
        kind: TransactionKind | str,
        amount,
        reference: str | None = None,
        description: str | None = None,
        order_id: str | None = None,
        created_by: str = "SYSTEM",
    ) -> LedgerEntry:
        """Append one entry to the courier's wallet, creating the wallet on first use."""
        kind = coerce_kind(kind)
        signed_amount(kind, amount)  # validates before anything is written

        with UnitOfWork():
            wallets = current_domain.repository_for(CourierWallet)
            entries = current_domain.repository_for(LedgerEntry)
            now = self._clock.now()

            wallet = wallets.find_by_courier(courier_id)
            if wallet is None:
                wallet = self._open_wallet(wallets, courier_id, now)
            else:
                self._assert_consistent(entries, wallet)

            if kind == TransactionKind.WITHDRAWAL and to_money(amount) > wallet.balance:
                raise InvalidState(
                    {"amount": [f"Insufficient balance: {wallet.balance} available, {to_money(amount)} requested"]}
                )

            if order_id is not None and entries.for_order(str(wallet.id), kind.value, order_id) is not None:
                raise InvalidState({"order_id": [f"{kind.value} already posted for order {order_id}"]})

            entry = wallet.record(
                kind,
                amount,
                now,
                reference=reference,
                description=description,
                order_id=order_id,
                created_by=created_by,
            )
            wallets.add(wallet)
            entries.add(entry)

        logger.info(
            "Ledger entry posted",
            courier_id=courier_id,
            kind=kind.value,
            amount=str(entry.signed_amount),
            balance_after=str(entry.balance_after),
            reference=reference,
        )
        return entry

    def withdraw(self, courier_id: str, amount, reference: str | None = None, created_by: str = "SYSTEM") -> LedgerEntry:
        return self.post(
            courier_id,
            TransactionKind.WITHDRAWAL,
            amount,
            reference=reference,
            description="Withdrawal",
            created_by=created_by,
        )

    def _open_wallet(self, wallets, courier_id: str, now: datetime) -> CourierWallet:
        """Insert the courier's first wallet row right away.

        Two first postings for the same courier both see no wallet; the one
        that inserts second fails on the unique ``courier_id`` and is reported
        as a concurrent modification so the caller can retry.
        """
        wallet = CourierWallet.open(courier_id, now)
        try:
            wallets.add(wallet)
            wallets.flush()
        except (IntegrityError, ValidationError):
            logger.info("Wallet creation lost", courier_id=courier_id)
            raise ConcurrentModification(
                {"courier_id": [f"Wallet for courier {courier_id} was created concurrently"]}
            ) from None

        logger.info("Wallet created", courier_id=courier_id, wallet_id=str(wallet.id))
        return wallet

    def _assert_consistent(self, entries, wallet: CourierWallet) -> None:
        latest = entries.latest(str(wallet.id))
        expected = latest.balance_after if latest is not None else ZERO
        expected_count = latest.sequence if latest is not None else 0
        if wallet.balance != expected or wallet.entry_count != expected_count:
            logger.critical(
                "Ledger inconsistency detected",
                courier_id=wallet.courier_id,
                wallet_id=str(wallet.id),
                balance=str(wallet.balance),
                last_balance_after=str(expected),
            )
            raise LedgerInconsistency(
                {
                    "balance": [
                        f"Wallet {wallet.id} balance {wallet.balance} does not match "
                        f"last ledger balance {expected}"
                    ]
                }
            )

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def history(self, courier_id: str, limit: int | None = None) -> list[LedgerEntry]:
        wallet = current_domain.repository_for(CourierWallet).get_by_courier(courier_id)
        return current_domain.repository_for(LedgerEntry).for_wallet(str(wallet.id), limit=limit)

    def totals(self, courier_id: str) -> WalletTotals:
        wallet = current_domain.repository_for(CourierWallet).get_by_courier(courier_id)
        return WalletTotals(
            courier_id=wallet.courier_id,
            balance=wallet.balance,
            total_earned=wallet.total_earned,
            total_withdrawn=wallet.total_withdrawn,
            total_bonuses=wallet.total_bonuses,
            total_fines=wallet.total_fines,
            entry_count=wallet.entry_count,
            updated_at=wallet.updated_at,
        )

    def verify(self, courier_id: str) -> int:
        """Walk the whole entry chain; return the number of entries checked."""
        wallet = current_domain.repository_for(CourierWallet).get_by_courier(courier_id)
        entries = current_domain.repository_for(LedgerEntry).for_wallet(str(wallet.id), newest_first=False)
        running = ZERO
        for position, entry in enumerate(entries, start=1):
            if entry.sequence != position:
                raise LedgerInconsistency({"sequence": [f"Entry {entry.id} has sequence {entry.sequence}, expected {position}"]})
            if entry.balance_before != running:
                raise LedgerInconsistency({"balance_before": [f"Entry {entry.sequence} starts at {entry.balance_before}, expected {running}"]})
            if entry.balance_after != entry.balance_before + signed_amount(entry.kind, entry.amount):
                raise LedgerInconsistency({"balance_after": [f"Entry {entry.sequence} does not add up"]})
            running = entry.balance_after
        if wallet.balance != running:
            raise LedgerInconsistency({"balance": [f"Wallet balance {wallet.balance} differs from ledger {running}"]})
        return len(entries)


def require_positive(amount) -> Decimal:
    amount = to_money(amount)
    if amount <= ZERO:
        raise ValidationError({"amount": ["Amount must be positive"]})
    return amount
