"""
Wallet automation loop for the Zenchain testnet.
Faucet, self-transfer and contract workflows for every wallet, then an
8-hour countdown, forever.
"""
import time
import typing as t

from eth_account.signers.local import LocalAccount
from tqdm import tqdm
from web3 import Web3

from config import (
    CYCLE_HOURS,
    MAX_BACKOFF,
    NETWORK_NAME,
    OPERATION_NAMES,
    PRIVATE_KEY_FILE,
    PROXY_FILE,
    WALLET_PAUSE_RANGE,
    AppConfig,
    RandomizationConfig,
    load_config,
    load_lines,
)
from core.compiler import SolidityCompiler
from core.faucet import FaucetManager
from core.identity import load_accounts
from core.lifecycle import TransactionLifecycle
from core.network import ConnectionManager
from core.scheduler import DelayPolicy, OperationScheduler, stamp
from core.transfer import TokenTransfer
from core.workflow import ContractWorkflow, WorkflowRunner
from workflows import (
    BatchOperationManager,
    ContractDeployer,
    ContractTesterManager,
    ERC20TokenDeployer,
    NFTManager,
)


def order_operations(randomization: RandomizationConfig, scheduler: OperationScheduler) -> t.List[str]:
    """
    Fixed (excluded) operations first in declaration order, then the rest,
    shuffled when randomization is on.
    """
    selected = [name for name in OPERATION_NAMES if name in randomization.operations_to_run]
    fixed = [name for name in selected if name in randomization.excluded_operations]
    rest = [name for name in selected if name not in randomization.excluded_operations]
    if randomization.enable_randomization and len(rest) > 1:
        rest = scheduler.shuffled(rest)
    return fixed + rest


class WalletRunner:
    """
    Runs the operation list for one wallet. Each operation gets its own
    TransactionLifecycle, so nonce caches never leak between workflows.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        wallet_num: int,
        config: AppConfig,
        connection: ConnectionManager,
        scheduler: OperationScheduler,
        delays: DelayPolicy,
        compiler: t.Optional[SolidityCompiler] = None,
        proxy: t.Optional[str] = None,
        sleep: t.Callable[[float], None] = time.sleep,
    ) -> None:
        self.web3 = web3
        self.account = account
        self.wallet_num = wallet_num
        self.config = config
        self.connection = connection
        self.scheduler = scheduler
        self.delays = delays
        self.compiler = compiler or SolidityCompiler()
        self.proxy = proxy
        self._sleep = sleep
        self._handlers: t.Dict[str, t.Callable[[], bool]] = {
            "faucet": self.run_faucet,
            "transfer": self.run_transfer,
            "contract_deploy": lambda: self.run_workflow(
                ContractDeployer(config.contract_deploy, scheduler, wallet_num)),
            "contract_testing": lambda: self.run_workflow(
                ContractTesterManager(config.contract_testing, scheduler, wallet_num)),
            "erc20": lambda: self.run_workflow(
                ERC20TokenDeployer(config.erc20, scheduler, wallet_num)),
            "nft": lambda: self.run_workflow(
                NFTManager(config.nft, scheduler, wallet_num)),
            "batch_operations": lambda: self.run_workflow(
                BatchOperationManager(config.batch_operations, scheduler, wallet_num)),
        }

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [Wallet] {message}")

    def is_enabled(self, name: str) -> bool:
        flags = {
            "faucet": self.config.faucet.enabled,
            "transfer": self.config.transfer.enabled,
            "contract_deploy": self.config.contract_deploy.enabled,
            "contract_testing": self.config.contract_testing.enabled,
            "erc20": self.config.erc20.enabled,
            "nft": self.config.nft.enabled,
            "batch_operations": self.config.batch_operations.enabled,
        }
        return flags.get(name, False)

    def new_lifecycle(self) -> TransactionLifecycle:
        return TransactionLifecycle(
            self.web3,
            self.account,
            gas_config=self.config.gas,
            delays=self.delays,
            wallet_num=self.wallet_num,
        )

    def run_faucet(self) -> bool:
        faucet = FaucetManager(
            self.web3,
            self.config.faucet,
            session=self.connection.http_session(self.proxy),
            delays=self.delays,
            sleep=self._sleep,
            wallet_num=self.wallet_num,
        )
        return faucet.execute(self.account.address)

    def run_transfer(self) -> bool:
        transfer = TokenTransfer(self.new_lifecycle(), self.config.transfer, self.scheduler)
        max_retries = self.config.max_retries
        for attempt in range(max_retries):
            self.log(f"Transferring tokens... (Attempt {attempt + 1}/{max_retries})")
            if transfer.transfer_to_self():
                return True
            if attempt + 1 < max_retries:
                wait_time = min(MAX_BACKOFF, self.config.base_wait_time * 2 ** (attempt + 1))
                self.log(f"Waiting {wait_time} seconds before retry...")
                self._sleep(wait_time)
        return False

    def run_workflow(self, workflow: ContractWorkflow) -> bool:
        return WorkflowRunner(self.new_lifecycle(), self.compiler).run(workflow)

    def run(self, operations: t.Sequence[str]) -> t.Dict[str, bool]:
        self.log(f"Operations sequence: {' -> '.join(operations)}")
        results: t.Dict[str, bool] = {}
        for name in operations:
            if not self.is_enabled(name):
                self.log(f"{name} disabled in config, skipping")
                continue
            print(f"\n=== Running {name} for Wallet {self.wallet_num} ===\n")
            try:
                results[name] = self._handlers[name]()
            except Exception as e:
                self.log(f"Error in {name}: {e}")
                results[name] = False
            self.delays.pause("next operation", self.wallet_num)
        return results


def countdown(hours: float = CYCLE_HOURS, sleep: t.Callable[[float], None] = time.sleep) -> None:
    total = int(hours * 3600)
    with tqdm(total=total, desc=f"{stamp()} Next cycle in", unit="s",
              bar_format="{desc}: {remaining} {bar}") as pbar:
        for _ in range(total):
            sleep(1)
            pbar.update(1)
    print(f"{stamp()} Countdown completed!")


def run_cycle(
    config: AppConfig,
    accounts: t.Sequence[LocalAccount],
    proxies: t.Sequence[str],
    connection: ConnectionManager,
    scheduler: OperationScheduler,
    delays: DelayPolicy,
    sleep: t.Callable[[float], None] = time.sleep,
) -> None:
    web3 = connection.get_web3()
    compiler = SolidityCompiler()
    print(f"\nProcessing {len(accounts)} wallets...\n")
    for index, account in enumerate(accounts):
        wallet_num = index + 1
        print(f"\n=== Processing Wallet {wallet_num}/{len(accounts)} ===\n")
        proxy = scheduler.pick_one(proxies) if proxies else None
        if proxy:
            print(f"{stamp(wallet_num)} [Wallet] Using proxy: {proxy}")
        runner = WalletRunner(
            web3, account, wallet_num, config, connection, scheduler, delays,
            compiler=compiler, proxy=proxy, sleep=sleep,
        )
        try:
            runner.run(order_operations(config.operation_randomization, scheduler))
        except Exception as e:
            print(f"{stamp(wallet_num)} [Wallet] Unexpected error: {e}")

        if index < len(accounts) - 1:
            pause = scheduler.pick_count(*WALLET_PAUSE_RANGE)
            delays.wait(pause, "next wallet", wallet_num)


def run(max_cycles: t.Optional[int] = None) -> None:
    cycles = 0
    while True:
        print(f"\n=== {NETWORK_NAME} Automation ===\n")
        config = load_config()
        proxies = load_lines(PROXY_FILE, required=False)
        accounts = load_accounts(load_lines(PRIVATE_KEY_FILE))
        print(f"{stamp()} Found {len(accounts)} private keys, {len(proxies)} proxies")

        scheduler = OperationScheduler()
        delays = DelayPolicy(config.delay, scheduler)
        run_cycle(config, accounts, proxies, ConnectionManager(), scheduler, delays)

        cycles += 1
        if max_cycles is not None and cycles >= max_cycles:
            break
        print(f"\nWallet processing completed! Starting {CYCLE_HOURS}-hour countdown...\n")
        countdown(CYCLE_HOURS)
