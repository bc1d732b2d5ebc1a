"""
Configuration module for the Zenchain testnet automation.
Single source of truth for network constants & per-component settings.
"""
import json
import os
import typing as t
from dataclasses import dataclass, field
from decimal import Decimal

# Network
NETWORK_NAME: str = "Zenchain Testnet"
CHAIN_ID: int = 8408
RPC_URL: str = "https://zenchain-testnet.api.onfinality.io/public"
EXPLORER_URL: str = "https://zentrace.io"
CURRENCY_SYMBOL: str = "ZCX"

# Faucet
FAUCET_API_URL: str = "https://faucet.zenchain.io/api"
FAUCET_WEBSITE_URL: str = "https://faucet.zenchain.io"
RECAPTCHA_SITE_KEY: str = "6LdMHhUqAAAAADFN5eiFL2503Mn6HDJC6RRMh8NM"  # invisible reCAPTCHA
CAPTCHA_API_URL: str = "https://api.capsolver.com"
CAPTCHA_POLL_INTERVAL: float = 2.0  # seconds
CAPTCHA_MAX_ATTEMPTS: int = 30

# Gas
PRICE_MULTIPLIER: float = 1.1
RETRY_INCREASE: float = 1.3
MIN_GWEI: Decimal = Decimal("0.0001")
MAX_GWEI: Decimal = Decimal("200")
DEFAULT_GAS: int = 150_000
GAS_BUFFER: Decimal = Decimal("1.2")

# Retry
MAX_RETRIES: int = 5
BASE_WAIT_TIME: int = 10  # seconds
MAX_BACKOFF: int = 300    # seconds
HTTP_RETRIES: int = 5
RECEIPT_TIMEOUT: int = 180  # seconds

# Transfer
TRANSFER_AMOUNT_PERCENTAGE: int = 90

# Timing
DELAY_MIN_SECONDS: int = 2
DELAY_MAX_SECONDS: int = 10
WALLET_PAUSE_RANGE: t.Tuple[int, int] = (5, 15)
CYCLE_HOURS: int = 8

# Compiler
SOLC_VERSION: str = "0.8.21"
EVM_VERSION: str = "paris"  # pre-Shanghai, no PUSH0
OPTIMIZER_RUNS: int = 200

# Files
CONFIG_FILE: str = "config.json"
PRIVATE_KEY_FILE: str = "pk.txt"
PROXY_FILE: str = "proxy.txt"

OPERATION_NAMES: t.List[str] = [
    "faucet",
    "transfer",
    "contract_deploy",
    "contract_testing",
    "erc20",
    "nft",
    "batch_operations",
]


class ConfigError(ValueError):
    """Raised when a configuration leaf has the wrong type or an impossible value."""


def _section(data: t.Any, key: str) -> t.Dict[str, t.Any]:
    value = data.get(key) if isinstance(data, dict) else None
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be an object, got {type(value).__name__}")
    return value


def _number(data: t.Dict[str, t.Any], key: str, default: t.Any) -> t.Any:
    value = data.get(key, default)
    if value is None:
        return default
    # bool is an int subclass; a flag in a numeric slot is a typo
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    if value < 0:
        raise ConfigError(f"'{key}' must not be negative, got {value!r}")
    return value


def _flag(data: t.Dict[str, t.Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _names(data: t.Dict[str, t.Any], key: str, default: t.List[str]) -> t.List[str]:
    value = data.get(key, default)
    if value is None:
        return list(default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings, got {value!r}")
    return list(value)


@dataclass(frozen=True)
class Range:
    """Inclusive integer range; ``max`` is raised to ``min`` when inverted."""
    min: int
    max: int

    def __post_init__(self) -> None:
        if self.max < self.min:
            object.__setattr__(self, "max", self.min)

    @classmethod
    def parse(cls, data: t.Dict[str, t.Any], key: str, default: "Range", floor: int = 0) -> "Range":
        """
        Read a range leaf that is either ``{"min": a, "max": b}`` or a bare integer.

        Args:
            data: Section holding the leaf.
            key: Leaf name.
            default: Range used for the leaf or for any missing end.
            floor: Lower bound applied to ``min``.
        """
        value = data.get(key)
        if value is None:
            lo, hi = default.min, default.max
        elif isinstance(value, dict):
            lo = int(_number(value, "min", default.min))
            hi = int(_number(value, "max", default.max))
        else:
            lo = hi = int(_number(data, key, default.min))
        lo = max(floor, lo)
        return cls(lo, max(lo, hi))


@dataclass(frozen=True)
class DelayConfig:
    min_seconds: float = DELAY_MIN_SECONDS
    max_seconds: float = DELAY_MAX_SECONDS

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "DelayConfig":
        section = _section(data, "delay")
        lo = _number(section, "min_seconds", DELAY_MIN_SECONDS)
        hi = _number(section, "max_seconds", DELAY_MAX_SECONDS)
        return cls(min_seconds=lo, max_seconds=max(lo, hi))


@dataclass(frozen=True)
class GasConfig:
    price_multiplier: float = PRICE_MULTIPLIER
    retry_increase: float = RETRY_INCREASE
    min_gwei: Decimal = MIN_GWEI
    max_gwei: Decimal = MAX_GWEI
    default_gas: int = DEFAULT_GAS

    def __post_init__(self) -> None:
        if self.min_gwei > self.max_gwei:
            raise ConfigError(f"min_gwei {self.min_gwei} exceeds max_gwei {self.max_gwei}")

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "GasConfig":
        section = _section(data, "gas")
        multiplier = _number(data, "gas_price_multiplier", PRICE_MULTIPLIER)
        return cls(
            price_multiplier=_number(section, "price_multiplier", multiplier),
            retry_increase=_number(section, "retry_increase", RETRY_INCREASE),
            min_gwei=Decimal(str(_number(section, "min_gwei", MIN_GWEI))),
            max_gwei=Decimal(str(_number(section, "max_gwei", MAX_GWEI))),
            default_gas=int(_number(section, "default_gas", DEFAULT_GAS)),
        )


@dataclass(frozen=True)
class TransferConfig:
    enabled: bool = True
    amount_percentage: int = TRANSFER_AMOUNT_PERCENTAGE
    transfer_count: Range = Range(1, 1)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "TransferConfig":
        return cls(
            enabled=_flag(data, "enable_transfer", True),
            amount_percentage=int(_number(data, "transfer_amount_percentage", TRANSFER_AMOUNT_PERCENTAGE)),
            transfer_count=Range.parse(data, "transfer_count", Range(1, 1), floor=1),
        )


INTERACTION_TYPES: t.List[str] = ["setValue", "increment", "decrement", "reset", "contribute"]


@dataclass(frozen=True)
class InteractionConfig:
    enabled: bool = True
    count: Range = Range(3, 8)
    types: t.List[str] = field(default_factory=lambda: list(INTERACTION_TYPES))

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "InteractionConfig":
        section = _section(data, "contract_interactions")
        return cls(
            enabled=_flag(section, "enabled", True),
            count=Range.parse(section, "count", Range(3, 8), floor=1),
            types=_names(section, "types", INTERACTION_TYPES) or list(INTERACTION_TYPES),
        )


@dataclass(frozen=True)
class ContractDeployConfig:
    enabled: bool = True
    interactions: InteractionConfig = field(default_factory=InteractionConfig)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "ContractDeployConfig":
        return cls(
            enabled=_flag(data, "enable_contract_deploy", True),
            interactions=InteractionConfig.from_dict(data),
        )


@dataclass(frozen=True)
class ERC20Config:
    enabled: bool = True
    mint_amount: Range = Range(1_000_000, 10_000_000)
    burn_percentage: float = 10
    decimals: int = 18

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "ERC20Config":
        section = _section(data, "erc20")
        return cls(
            enabled=_flag(section, "enable_erc20", True),
            mint_amount=Range.parse(section, "mint_amount", Range(1_000_000, 10_000_000), floor=1),
            burn_percentage=_number(section, "burn_percentage", 10),
            decimals=int(_number(section, "decimals", 18)),
        )


@dataclass(frozen=True)
class NFTConfig:
    enabled: bool = True
    mint_count: Range = Range(2, 10)
    burn_percentage: float = 20
    supply: Range = Range(100, 1000)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "NFTConfig":
        section = _section(data, "nft")
        return cls(
            enabled=_flag(section, "enable_nft", True),
            mint_count=Range.parse(section, "mint_count", Range(2, 10), floor=1),
            burn_percentage=_number(section, "burn_percentage", 20),
            supply=Range.parse(section, "supply", Range(100, 1000), floor=10),
        )


TEST_SEQUENCES: t.List[str] = ["parameter_variation", "stress_test", "boundary_test"]


@dataclass(frozen=True)
class ContractTestingConfig:
    enabled: bool = True
    test_sequences: t.List[str] = field(default_factory=lambda: list(TEST_SEQUENCES))
    iterations: Range = Range(3, 10)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "ContractTestingConfig":
        section = _section(data, "contract_testing")
        return cls(
            enabled=_flag(section, "enable_contract_testing", True),
            test_sequences=_names(section, "test_sequences", TEST_SEQUENCES),
            iterations=Range.parse(section, "iterations", Range(3, 10), floor=1),
        )


@dataclass(frozen=True)
class BatchConfig:
    enabled: bool = True
    operations_per_batch: Range = Range(2, 5)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "BatchConfig":
        section = _section(data, "batch_operations")
        return cls(
            enabled=_flag(section, "enable_batch_operations", True),
            operations_per_batch=Range.parse(section, "operations_per_batch", Range(2, 5), floor=1),
        )


@dataclass(frozen=True)
class FaucetConfig:
    enabled: bool = True
    max_retries: int = 3
    max_wait_time: float = 300  # seconds
    check_interval: float = 5   # seconds
    captcha_api_key: str = ""
    base_wait_time: float = BASE_WAIT_TIME

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "FaucetConfig":
        section = _section(data, "faucet")
        api_key = section.get("captcha_api_key") or ""
        if not isinstance(api_key, str):
            raise ConfigError("'captcha_api_key' must be a string")
        return cls(
            enabled=_flag(section, "enable_faucet", True),
            max_retries=max(1, int(_number(section, "max_retries", 3))),
            max_wait_time=_number(section, "max_wait_time", 300),
            check_interval=_number(section, "check_interval", 5) or 5,
            captcha_api_key=api_key,
            base_wait_time=_number(data, "base_wait_time", BASE_WAIT_TIME),
        )


@dataclass(frozen=True)
class RandomizationConfig:
    enable_randomization: bool = False
    excluded_operations: t.List[str] = field(default_factory=lambda: ["faucet"])
    operations_to_run: t.List[str] = field(default_factory=lambda: list(OPERATION_NAMES))

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "RandomizationConfig":
        section = _section(data, "operation_randomization")
        return cls(
            enable_randomization=_flag(section, "enable_randomization", False),
            excluded_operations=_names(section, "excluded_operations", ["faucet"]),
            operations_to_run=_names(section, "operations_to_run", OPERATION_NAMES),
        )


@dataclass(frozen=True)
class AppConfig:
    """Aggregated configuration for one automation cycle."""
    delay: DelayConfig = field(default_factory=DelayConfig)
    gas: GasConfig = field(default_factory=GasConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    contract_deploy: ContractDeployConfig = field(default_factory=ContractDeployConfig)
    erc20: ERC20Config = field(default_factory=ERC20Config)
    nft: NFTConfig = field(default_factory=NFTConfig)
    contract_testing: ContractTestingConfig = field(default_factory=ContractTestingConfig)
    batch_operations: BatchConfig = field(default_factory=BatchConfig)
    faucet: FaucetConfig = field(default_factory=FaucetConfig)
    operation_randomization: RandomizationConfig = field(default_factory=RandomizationConfig)
    max_retries: int = MAX_RETRIES
    base_wait_time: float = BASE_WAIT_TIME

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "AppConfig":
        if not isinstance(data, dict):
            raise ConfigError("configuration root must be an object")
        return cls(
            delay=DelayConfig.from_dict(data),
            gas=GasConfig.from_dict(data),
            transfer=TransferConfig.from_dict(data),
            contract_deploy=ContractDeployConfig.from_dict(data),
            erc20=ERC20Config.from_dict(data),
            nft=NFTConfig.from_dict(data),
            contract_testing=ContractTestingConfig.from_dict(data),
            batch_operations=BatchConfig.from_dict(data),
            faucet=FaucetConfig.from_dict(data),
            operation_randomization=RandomizationConfig.from_dict(data),
            max_retries=max(1, int(_number(data, "max_retries", MAX_RETRIES))),
            base_wait_time=_number(data, "base_wait_time", BASE_WAIT_TIME),
        )


def load_config(path: str = CONFIG_FILE) -> AppConfig:
    """
    Load the JSON configuration file.

    A missing or unparsable file yields the defaults; a parsable file with
    badly typed leaves raises ConfigError.
    """
    if not os.path.exists(path):
        print(f"[Config] No {path} found, using defaults")
        return AppConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[Config] Error loading {path}: {e}. Using defaults")
        return AppConfig()
    print(f"[Config] Loaded {path}")
    return AppConfig.from_dict(data)


def load_lines(path: str, required: bool = True) -> t.List[str]:
    """
    Read non-empty, stripped lines from a text file.

    Args:
        path: File to read.
        required: When False, a missing file yields an empty list.
    """
    if not os.path.exists(path):
        if required:
            raise FileNotFoundError(f"{path} not found")
        print(f"[Config] {path} not found, continuing without it")
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]
