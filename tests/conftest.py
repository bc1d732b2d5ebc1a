import random
import typing as t
from unittest.mock import MagicMock

import pytest
from eth_account import Account

from config import GasConfig
from core.lifecycle import TransactionLifecycle
from core.scheduler import DelayPolicy, OperationScheduler

# Well-known throwaway key from the eth-account documentation
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
CONTRACT_ADDRESS = "0x" + "12" * 20


class FakeEth:
    """In-memory stand-in for ``web3.eth`` with switchable failures."""

    def __init__(self) -> None:
        self.transaction_count = 7
        self.count_queries = 0
        self.network_gas_price = 1_000_000_000  # 1 gwei
        self.gas_price_error: t.Optional[Exception] = None
        self.estimate = 50_000
        self.estimate_error: t.Optional[Exception] = None
        self.estimated: t.List[t.Dict[str, t.Any]] = []
        self.balances: t.List[int] = [10 ** 18]
        self.send_error: t.Optional[Exception] = None
        self.sent: t.List[bytes] = []
        self.receipt_status = 1
        self.contract_address: t.Optional[str] = None
        self.contract_mock = MagicMock()
        self.contract_mock.encode_abi.return_value = "0xdeadbeef"
        self.contract_mock.constructor.return_value.data_in_transaction = "0x6080"

    def get_transaction_count(self, address: str) -> int:
        self.count_queries += 1
        return self.transaction_count

    @property
    def gas_price(self) -> int:
        if self.gas_price_error is not None:
            raise self.gas_price_error
        return self.network_gas_price

    def estimate_gas(self, tx: t.Dict[str, t.Any]) -> int:
        self.estimated.append(dict(tx))
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.estimate

    def get_balance(self, address: str) -> int:
        # Last value repeats once the scripted sequence is exhausted
        if len(self.balances) > 1:
            return self.balances.pop(0)
        return self.balances[0]

    def send_raw_transaction(self, raw: bytes) -> bytes:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw)
        return bytes([len(self.sent)]) * 32

    def wait_for_transaction_receipt(self, tx_hash: bytes, timeout: int = 120) -> t.Dict[str, t.Any]:
        return {
            "status": self.receipt_status,
            "transactionHash": tx_hash,
            "contractAddress": self.contract_address,
        }

    def contract(self, address: t.Optional[str] = None, abi: t.Any = None, bytecode: t.Any = None) -> MagicMock:
        return self.contract_mock


class FakeWeb3:
    def __init__(self) -> None:
        self.eth = FakeEth()


@pytest.fixture
def fake_web3():
    return FakeWeb3()


@pytest.fixture
def account():
    return Account.from_key(TEST_KEY)


@pytest.fixture
def scheduler():
    return OperationScheduler(random.Random(1234))


@pytest.fixture
def lifecycle(fake_web3, account):
    return TransactionLifecycle(
        fake_web3,
        account,
        gas_config=GasConfig(),
        delays=DelayPolicy.disabled(),
        wallet_num=1,
    )
