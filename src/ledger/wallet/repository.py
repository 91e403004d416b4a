"""Wallet and ledger-entry queries."""

from protean.exceptions import ObjectNotFoundError

from ledger.wallet.wallet import CourierWallet, LedgerEntry
from shared.domain import dispatch


@dispatch.repository(part_of=CourierWallet)
class WalletRepository:
    def find_by_courier(self, courier_id: str) -> CourierWallet | None:
        return self.query.filter(courier_id=courier_id).all().first

    def get_by_courier(self, courier_id: str) -> CourierWallet:
        wallet = self.find_by_courier(courier_id)
        if wallet is None:
            raise ObjectNotFoundError({"courier_id": [f"No wallet for courier {courier_id}"]})
        return wallet

    def flush(self) -> None:
        """Write pending changes now, inside the current transaction."""
        self._dao._flush()


@dispatch.repository(part_of=LedgerEntry)
class LedgerEntryRepository:
    def latest(self, wallet_id: str) -> LedgerEntry | None:
        return self.query.filter(wallet_id=wallet_id).order_by("-sequence").limit(1).all().first

    def for_wallet(self, wallet_id: str, limit: int | None = None, newest_first: bool = True) -> list[LedgerEntry]:
        query = self.query.filter(wallet_id=wallet_id).order_by("-sequence" if newest_first else "sequence")
        if limit is not None:
            query = query.limit(limit)
        return query.all().items

    def for_order(self, wallet_id: str, kind: str, order_id: str) -> LedgerEntry | None:
        return self.query.filter(wallet_id=wallet_id, kind=kind, order_id=order_id).all().first
