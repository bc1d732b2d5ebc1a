"""
Gas pricing and estimation for the testnet automation.
Bounded retry-escalated prices and buffered estimates with static fallbacks.
"""
import typing as t
from decimal import Decimal, Overflow, ROUND_CEILING, ROUND_FLOOR, localcontext

from web3 import Web3
from web3.types import TxParams

from config import DEFAULT_GAS, GAS_BUFFER, GasConfig
from .scheduler import stamp

# Enough digits for any uint256 quote times an escalated multiplier
DECIMAL_PRECISION = 120


class GasPricer:
    """
    Turns the network's legacy gas price quote into the price we submit with.

    multiplier = price_multiplier * retry_increase ** retry_count, the adjusted
    price is floored and then clamped to [min_gwei, max_gwei]. All arithmetic
    is Decimal/int so large quotes keep full precision.
    """

    def __init__(self, web3: Web3, config: t.Optional[GasConfig] = None, wallet_num: t.Optional[int] = None) -> None:
        self.web3 = web3
        self.config = config or GasConfig()
        self.wallet_num = wallet_num

    @property
    def min_price(self) -> int:
        return int(Web3.to_wei(self.config.min_gwei, "gwei"))

    @property
    def max_price(self) -> int:
        return int(Web3.to_wei(self.config.max_gwei, "gwei"))

    def multiplier(self, retry_count: int = 0) -> Decimal:
        """Escalated multiplier; Infinity once it leaves the Decimal range."""
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            ctx.traps[Overflow] = False
            base = Decimal(str(self.config.price_multiplier))
            if retry_count <= 0 or base == 0:
                return base
            return base * Decimal(str(self.config.retry_increase)) ** retry_count

    def adjust(self, network_price: int, retry_count: int = 0) -> int:
        """Apply the multiplier and clamp. Pure; used by get_gas_price."""
        network_price = int(network_price)
        multiplier = self.multiplier(retry_count)
        if network_price <= 0:
            adjusted = 0
        elif not multiplier.is_finite():
            adjusted = self.max_price
        else:
            with localcontext() as ctx:
                ctx.prec = DECIMAL_PRECISION
                ctx.traps[Overflow] = False
                raw = Decimal(network_price) * multiplier
                if raw.is_finite():
                    adjusted = int(raw.to_integral_value(rounding=ROUND_FLOOR))
                else:
                    adjusted = self.max_price
        return min(self.max_price, max(self.min_price, adjusted))

    def get_gas_price(self, retry_count: int = 0) -> str:
        """
        Fetch, scale and clamp the gas price.

        Returns:
            Price in wei as a decimal string. A failed fetch yields the minimum.
        """
        try:
            network_price = int(self.web3.eth.gas_price)
        except Exception as e:
            print(f"{stamp(self.wallet_num)} [Gas] Error getting gas price: {e}. Using minimum {self.config.min_gwei} gwei")
            return str(self.min_price)

        price = self.adjust(network_price, retry_count)
        if retry_count > 0:
            print(f"{stamp(self.wallet_num)} [Gas] Retry {retry_count}: multiplier {self.multiplier(retry_count):.2f}x")
        print(
            f"{stamp(self.wallet_num)} [Gas] Network price: {Web3.from_wei(network_price, 'gwei')} gwei, "
            f"using: {Web3.from_wei(price, 'gwei')} gwei"
        )
        return str(price)


class GasEstimator:
    """Buffered gas estimates with an operation-class fallback."""

    def __init__(self, web3: Web3, default_gas: int = DEFAULT_GAS, wallet_num: t.Optional[int] = None) -> None:
        self.web3 = web3
        self.default_gas = default_gas
        self.wallet_num = wallet_num

    @staticmethod
    def with_buffer(estimate: int) -> int:
        """ceil(estimate * GAS_BUFFER), never below the raw estimate."""
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            raw = Decimal(int(estimate)) * GAS_BUFFER
            return int(raw.to_integral_value(rounding=ROUND_CEILING))

    def estimate_gas(self, tx_template: TxParams, default_gas: t.Optional[int] = None) -> int:
        fallback = self.default_gas if default_gas is None else default_gas
        try:
            estimate = int(self.web3.eth.estimate_gas(tx_template))
        except Exception as e:
            print(f"{stamp(self.wallet_num)} [Gas] Estimation failed: {e}. Using default gas: {fallback}")
            return fallback
        buffered = self.with_buffer(estimate)
        print(f"{stamp(self.wallet_num)} [Gas] Estimated gas: {estimate}, with buffer: {buffered}")
        return buffered
