"""
ERC20 token workflow.
Deploys a freshly named token, mints a random supply, burns a share of it.
"""
import re
import typing as t
from decimal import Decimal, ROUND_FLOOR

from config import ERC20Config
from core.compiler import load_source, render_template
from core.lifecycle import ContractSession
from core.scheduler import OperationScheduler, stamp
from core.workflow import ContractBlueprint

TOKEN_NAME_PREFIXES: t.List[str] = [
    "Moon", "Doge", "Shib", "Pepe", "Ape", "Baby", "Safe", "Floki", "Elon", "Mars",
    "Space", "Rocket", "Diamond", "Crypto", "Meme", "Chad", "Bull", "Super", "Mega", "Meta",
    "Ninja", "Turbo", "Lambo", "Hodl", "Pump", "King", "Based", "Alpha", "Sigma", "Giga",
    "Wojak", "Stonk", "Bonk", "Chungus", "Gigachad", "Frog", "Fren", "Wen", "Wagmi", "Ngmi",
]
TOKEN_NAME_SUFFIXES: t.List[str] = [
    "Coin", "Token", "Cash", "Swap", "Inu", "Dao", "Moon", "Doge", "Chain", "Finance",
    "Protocol", "Network", "Exchange", "Capital", "Money", "Rocket", "Rise", "Gains", "Pump", "Whale",
    "Bit", "Satoshi", "Elon", "Mars", "Galaxy", "Star", "Nova", "Verse", "World", "Gem",
]


def token_symbol(name: str) -> str:
    """Initials of the name; the first word's first four letters if that runs past 5."""
    words = name.split()
    symbol = "".join(word[0] for word in words).upper()
    if len(symbol) > 5:
        symbol = words[0][:4].upper()
    return symbol


def contract_identifier(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "", name)


def burn_amount(mint_amount: int, percentage: float) -> int:
    """floor(mint_amount * percentage / 100), in whole tokens."""
    raw = Decimal(mint_amount) * Decimal(str(percentage)) / 100
    return int(raw.to_integral_value(rounding=ROUND_FLOOR))


class ERC20TokenDeployer:
    label = "ERC20"

    def __init__(
        self,
        config: t.Optional[ERC20Config] = None,
        scheduler: t.Optional[OperationScheduler] = None,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.config = config or ERC20Config()
        self.scheduler = scheduler or OperationScheduler()
        self.wallet_num = wallet_num
        self.token_name: t.Optional[str] = None
        self.symbol: t.Optional[str] = None

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [ERC20] {message}")

    def generate_name(self) -> str:
        prefix = self.scheduler.pick_one(TOKEN_NAME_PREFIXES)
        suffix = self.scheduler.pick_one(TOKEN_NAME_SUFFIXES)
        return f"{prefix} {suffix}"

    def blueprint(self) -> ContractBlueprint:
        self.token_name = self.generate_name()
        self.symbol = token_symbol(self.token_name)
        identifier = contract_identifier(self.token_name)
        self.log(f"Token: {self.token_name} ({self.symbol}), decimals {self.config.decimals}")
        return ContractBlueprint(
            contract_name=identifier,
            source=render_template(load_source("TokenTemplate.sol"), identifier),
            constructor_args=(self.token_name, self.symbol, self.config.decimals),
            deploy_gas=2_500_000,
        )

    def to_units(self, amount: int) -> int:
        return amount * 10 ** self.config.decimals

    def interact(self, session: ContractSession) -> bool:
        owner = session.lifecycle.address
        mint = self.scheduler.pick_count(self.config.mint_amount.min, self.config.mint_amount.max)
        self.log(f"Will mint {mint:,} tokens")

        minted = session.transact("mint", owner, self.to_units(mint), label="token minting")
        if not minted.success:
            self.log(f"Failed to mint tokens: {minted.error}")
            return False
        self.log(f"Minted {mint:,} {self.symbol}")

        percentage = self.scheduler.clamp_percent(self.config.burn_percentage)
        burn = burn_amount(mint, percentage)
        if burn > 0:
            self.log(f"Burning {burn:,} tokens ({percentage}% of minted)")
            burned = session.transact("burn", self.to_units(burn), label="token burning")
            if burned.success:
                self.log(f"Burned {burn:,} {self.symbol}")
            else:
                self.log(f"Failed to burn tokens: {burned.error}")
        else:
            self.log(f"No tokens to burn (burn percentage: {percentage}%)")

        try:
            balance = session.call("balanceOf", owner)
            supply = session.call("totalSupply")
            self.log(f"Balance: {balance}, total supply: {supply}")
        except Exception as e:
            self.log(f"Could not read token state: {e}")
        return True
