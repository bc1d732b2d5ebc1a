"""
Operation scheduling for the testnet automation.
Bounded random counts, random picks, and humanizing delays.
"""
import random
import time
import typing as t
from datetime import datetime

from config import DelayConfig

T = t.TypeVar("T")


def stamp(wallet_num: t.Optional[int] = None) -> str:
    """Wallet-scoped timestamp tag used as the prefix of every log line."""
    now = datetime.now().strftime("%H:%M:%S")
    if wallet_num is None:
        return f"[{now}]"
    return f"[{now} - Wallet {wallet_num}]"


class OperationScheduler:
    """
    Source of every random decision made by the workflows.

    Pass a seeded ``random.Random`` to make a run reproducible.
    """

    def __init__(self, rng: t.Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def pick_count(self, min_count: int, max_count: int) -> int:
        """
        Uniform integer in [min_count, max_count] inclusive.
        An inverted range behaves as if max_count were min_count.
        """
        if max_count < min_count:
            max_count = min_count
        return self.rng.randint(min_count, max_count)

    def pick_one(self, candidates: t.Sequence[T]) -> T:
        if not candidates:
            raise ValueError("Cannot pick from an empty sequence")
        return self.rng.choice(candidates)

    def pick_subset(self, candidates: t.Sequence[T], size: int) -> t.List[T]:
        """Random subset of ``size`` distinct elements (fewer if not enough)."""
        size = max(0, min(size, len(candidates)))
        return self.rng.sample(list(candidates), size)

    def shuffled(self, items: t.Sequence[T]) -> t.List[T]:
        """Fisher-Yates shuffle into a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.rng.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def random_int(self, low: int, high: int) -> int:
        return self.rng.randint(low, high)

    def random_hex(self, num_bytes: int) -> str:
        return self.rng.getrandbits(num_bytes * 8).to_bytes(num_bytes, "big").hex()

    @staticmethod
    def clamp_percent(value: float) -> float:
        return min(100, max(0, value))


class DelayPolicy:
    """
    Humanizing pauses between transaction-issuing steps.

    The delays carry no correctness meaning: a failure inside the pause is
    logged and treated as no delay. ``enabled=False`` turns every pause into
    a no-op, which is what the tests use.
    """

    def __init__(
        self,
        config: t.Optional[DelayConfig] = None,
        scheduler: t.Optional[OperationScheduler] = None,
        sleep: t.Callable[[float], None] = time.sleep,
        enabled: bool = True,
    ) -> None:
        self.config = config or DelayConfig()
        self.scheduler = scheduler or OperationScheduler()
        self._sleep = sleep
        self.enabled = enabled

    @classmethod
    def disabled(cls) -> "DelayPolicy":
        return cls(enabled=False)

    def pause(
        self,
        label: str = "next transaction",
        wallet_num: t.Optional[int] = None,
        scale: int = 1,
    ) -> bool:
        """
        Sleep a whole number of seconds drawn from the configured window.

        Args:
            label: What the pause precedes, for the log line.
            wallet_num: Wallet tag for the log line.
            scale: Multiplier applied to both ends of the window.

        Returns:
            True if the pause completed (or is disabled), False if it failed.
        """
        if not self.enabled:
            return True
        try:
            low = int(self.config.min_seconds * scale)
            high = int(self.config.max_seconds * scale)
            seconds = self.scheduler.pick_count(low, high)
            print(f"{stamp(wallet_num)} [Delay] Waiting {seconds} seconds before {label}...")
            self._sleep(seconds)
            return True
        except Exception as e:
            print(f"{stamp(wallet_num)} [Delay] Error in delay: {e}")
            return False

    def wait(self, seconds: float, label: str, wallet_num: t.Optional[int] = None) -> None:
        """Fixed wait (retry backoff, wallet pauses); skipped when disabled."""
        if not self.enabled:
            return
        print(f"{stamp(wallet_num)} [Delay] Waiting {seconds} seconds before {label}...")
        self._sleep(seconds)
