"""
Native currency self-transfer for the testnet automation.
"""
import typing as t
from dataclasses import replace

from web3 import Web3

from config import CURRENCY_SYMBOL, TransferConfig
from .lifecycle import TransactionLifecycle
from .scheduler import OperationScheduler, stamp


def transfer_amount(balance: int, percentage: int, gas: int, gas_price: int) -> int:
    """Share of the balance to send, net of the transaction's own gas cost."""
    percentage = OperationScheduler.clamp_percent(percentage)
    return balance * int(percentage) // 100 - gas * gas_price


class TokenTransfer:
    """
    Sends a percentage of the wallet's balance back to itself.
    """

    def __init__(
        self,
        lifecycle: TransactionLifecycle,
        config: t.Optional[TransferConfig] = None,
        scheduler: t.Optional[OperationScheduler] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.config = config or TransferConfig()
        self.scheduler = scheduler or OperationScheduler()

    @property
    def wallet_num(self) -> t.Optional[int]:
        return self.lifecycle.wallet_num

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [Transfer] {message}")

    def execute_transfer(self, transfer_num: int = 1, total: int = 1) -> bool:
        """
        One self-transfer. Nothing to send (empty balance, or balance below the
        gas cost) counts as success; any error counts as failure.
        """
        web3 = self.lifecycle.web3
        address = self.lifecycle.address
        try:
            balance = int(web3.eth.get_balance(address))
            if balance == 0:
                self.log("No balance to transfer")
                return True

            self.lifecycle.delays.pause(f"transfer #{transfer_num}/{total}", self.wallet_num)
            intent = self.lifecycle.build(to=address, data="0x")
            amount = transfer_amount(balance, self.config.amount_percentage, intent.gas, intent.gas_price)
            if amount <= 0:
                self.log("Balance too low to cover gas")
                return True

            self.log(f"Sending transfer #{transfer_num}/{total} of {Web3.from_wei(amount, 'ether')} {CURRENCY_SYMBOL} to self")
            result = self.lifecycle.submit(replace(intent, value=amount))
        except Exception as e:
            self.log(f"Error in transfer #{transfer_num}/{total}: {e}")
            return False

        if not result.success:
            self.log(f"Transfer #{transfer_num}/{total} failed: {result.error}")
        return result.success

    def transfer_to_self(self) -> bool:
        if not self.config.enabled:
            return True

        self.lifecycle.nonces.reset()
        count_range = self.config.transfer_count
        count = self.scheduler.pick_count(count_range.min, count_range.max)
        self.log(f"Will perform {count} self-transfers")

        success_count = 0
        for i in range(1, count + 1):
            if self.execute_transfer(i, count):
                success_count += 1
            if i < count:
                self.lifecycle.delays.pause(f"next transfer ({i + 1}/{count})", self.wallet_num)

        self.log(f"Self-transfers completed: {success_count}/{count} successful")
        return success_count > 0
