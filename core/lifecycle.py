"""
Transaction lifecycle for the testnet automation.
Nonce -> gas price -> estimate -> sign -> submit -> receipt, shared by every workflow.
"""
import typing as t
from dataclasses import dataclass, field, replace

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.types import TxParams

from config import CHAIN_ID, EXPLORER_URL, RECEIPT_TIMEOUT, GasConfig
from .compiler import CompiledContract
from .gas import GasEstimator, GasPricer
from .identity import NonceTracker
from .scheduler import DelayPolicy, stamp


class DeploymentError(RuntimeError):
    """A contract deployment did not produce a contract address."""


@dataclass(frozen=True)
class TransactionIntent:
    """Fully priced, unsigned transaction. Retries build a new intent."""
    sender: str
    to: t.Optional[str]
    data: str
    nonce: int
    chain_id: int
    gas: int
    gas_price: int
    value: int = 0

    def template(self) -> TxParams:
        """Fields used for estimation (no gas, no price)."""
        tx: t.Dict[str, t.Any] = {
            "from": self.sender,
            "data": self.data,
            "nonce": self.nonce,
            "chainId": self.chain_id,
        }
        if self.to is not None:
            tx["to"] = self.to
        if self.value:
            tx["value"] = self.value
        return t.cast(TxParams, tx)

    def to_tx(self) -> TxParams:
        tx = dict(self.template())
        tx["value"] = self.value
        tx["gas"] = self.gas
        tx["gasPrice"] = self.gas_price
        return t.cast(TxParams, tx)


@dataclass
class TxResult:
    success: bool
    tx_hash: t.Optional[str] = None
    contract_address: t.Optional[str] = None
    error: t.Optional[str] = None
    receipt: t.Optional[t.Any] = field(default=None, repr=False)


@dataclass(frozen=True)
class DeployedContract:
    address: str
    abi: t.List[t.Dict[str, t.Any]]
    tx_hash: str


class TransactionLifecycle:
    """
    One account's path from intent to receipt.

    Owns the account's NonceTracker, GasPricer and GasEstimator. Every
    transact/deploy is a fresh pass; the only state carried between passes
    is the nonce cache. The nonce is incremented after signing and is not
    rolled back when the broadcast fails.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        gas_config: t.Optional[GasConfig] = None,
        delays: t.Optional[DelayPolicy] = None,
        wallet_num: t.Optional[int] = None,
        chain_id: int = CHAIN_ID,
        receipt_timeout: int = RECEIPT_TIMEOUT,
    ) -> None:
        gas_config = gas_config or GasConfig()
        self.web3 = web3
        self.account = account
        self.wallet_num = wallet_num
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.delays = delays or DelayPolicy()
        self.nonces = NonceTracker(web3, account.address, wallet_num)
        self.pricer = GasPricer(web3, gas_config, wallet_num)
        self.estimator = GasEstimator(web3, gas_config.default_gas, wallet_num)

    @property
    def address(self) -> str:
        return self.account.address

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [Lifecycle] {message}")

    # ---------- State machine steps ----------
    def build(
        self,
        to: t.Optional[str],
        data: str = "0x",
        value: int = 0,
        default_gas: t.Optional[int] = None,
        retry_count: int = 0,
    ) -> TransactionIntent:
        """Acquire nonce, price and gas limit for a new intent."""
        nonce = self.nonces.get_nonce()
        gas_price = int(self.pricer.get_gas_price(retry_count))
        intent = TransactionIntent(
            sender=self.account.address,
            to=to,
            data=data,
            nonce=nonce,
            chain_id=self.chain_id,
            gas=0,
            gas_price=gas_price,
            value=value,
        )
        gas = self.estimator.estimate_gas(intent.template(), default_gas)
        return replace(intent, gas=gas)

    def submit(self, intent: TransactionIntent) -> TxResult:
        """
        Sign, advance the nonce, broadcast and wait for the receipt.

        Raises whatever the signer or ledger client raises; a mined but
        reverted transaction is returned as a failed result.
        """
        signed = self.account.sign_transaction(intent.to_tx())
        self.nonces.increment_nonce()
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)
        receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt["status"] != 1:
            return TxResult(False, tx_hash=tx_hash_hex, error=f"Tx {tx_hash_hex} reverted", receipt=receipt)
        self.log(f"Confirmed: {EXPLORER_URL}/tx/{tx_hash_hex}")
        return TxResult(
            True,
            tx_hash=tx_hash_hex,
            contract_address=receipt.get("contractAddress"),
            receipt=receipt,
        )

    # ---------- Full passes ----------
    def execute(
        self,
        to: t.Optional[str],
        data: str = "0x",
        value: int = 0,
        default_gas: t.Optional[int] = None,
        label: t.Optional[str] = None,
    ) -> TxResult:
        """One complete pass; every failure becomes an unsuccessful TxResult."""
        if label:
            self.delays.pause(label, self.wallet_num)
        try:
            result = self.submit(self.build(to, data, value, default_gas))
        except Exception as e:
            result = TxResult(False, error=str(e))
        if not result.success:
            self.log(f"Failed{f' ({label})' if label else ''}: {result.error}")
        return result

    def deploy(
        self,
        compiled: CompiledContract,
        constructor_args: t.Sequence[t.Any] = (),
        default_gas: t.Optional[int] = None,
        label: t.Optional[str] = None,
    ) -> DeployedContract:
        """
        Deploy a compiled contract.

        Raises:
            DeploymentError: The deployment failed or returned no address.
        """
        factory = self.web3.eth.contract(abi=compiled.abi, bytecode=compiled.bytecode)
        data = factory.constructor(*constructor_args).data_in_transaction
        result = self.execute(None, data, default_gas=default_gas, label=label or f"{compiled.name} deployment")
        if not result.success or not result.contract_address:
            raise DeploymentError(f"Deployment of {compiled.name} failed: {result.error or 'no contract address'}")
        self.log(f"{compiled.name} deployed at: {result.contract_address}")
        return DeployedContract(address=result.contract_address, abi=compiled.abi, tx_hash=t.cast(str, result.tx_hash))


class ContractSession:
    """A deployed contract bound to the lifecycle that deployed it."""

    def __init__(self, lifecycle: TransactionLifecycle, deployed: DeployedContract) -> None:
        self.lifecycle = lifecycle
        self.deployed = deployed
        self.contract = lifecycle.web3.eth.contract(address=deployed.address, abi=deployed.abi)

    @property
    def address(self) -> str:
        return self.deployed.address

    def transact(
        self,
        fn_name: str,
        *args: t.Any,
        value: int = 0,
        label: t.Optional[str] = None,
        default_gas: t.Optional[int] = None,
    ) -> TxResult:
        try:
            data = self.contract.encode_abi(fn_name, args=list(args))
        except Exception as e:
            self.lifecycle.log(f"Cannot encode {fn_name}{tuple(args)}: {e}")
            return TxResult(False, error=str(e))
        return self.lifecycle.execute(self.address, data, value=value, default_gas=default_gas, label=label)

    def call(self, fn_name: str, *args: t.Any) -> t.Any:
        return self.contract.functions[fn_name](*args).call()
