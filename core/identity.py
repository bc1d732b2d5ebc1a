"""
Identity management for the testnet automation.
Private-key accounts & optimistic local nonce tracking.
"""
import typing as t

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .scheduler import stamp


def normalize_key(private_key: str) -> str:
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    return key


def load_accounts(private_keys: t.Iterable[str]) -> t.List[LocalAccount]:
    """
    Build signing accounts from raw private keys (``0x`` prefix optional).

    Raises:
        ValueError: A key is not a valid secp256k1 private key.
    """
    return [Account.from_key(normalize_key(key)) for key in private_keys]


class NonceTracker:
    """
    Per-account nonce cache (local counting only).

    The first ``get_nonce`` after construction or ``reset`` reads the account's
    transaction count from the ledger; later calls serve the cached value.
    Callers increment right after signing, before broadcast, so the next
    transaction built gets a distinct nonce even if the previous one is still
    pending. A broadcast that fails after the increment still consumes the
    slot; the cache is not reconciled with the ledger until the next reset.
    """

    def __init__(self, web3: Web3, address: str, wallet_num: t.Optional[int] = None) -> None:
        self.web3 = web3
        self.address = address
        self.wallet_num = wallet_num
        self._nonce: t.Optional[int] = None

    @property
    def cached(self) -> t.Optional[int]:
        return self._nonce

    def get_nonce(self) -> int:
        if self._nonce is None:
            self._nonce = int(self.web3.eth.get_transaction_count(self.address))
            print(f"{stamp(self.wallet_num)} [Nonce] Initial nonce from network: {self._nonce}")
        else:
            print(f"{stamp(self.wallet_num)} [Nonce] Using tracked nonce: {self._nonce}")
        return self._nonce

    def increment_nonce(self) -> None:
        # No-op until the ledger has been queried once
        if self._nonce is not None:
            self._nonce += 1

    def reset(self) -> None:
        self._nonce = None
