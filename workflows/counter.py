"""
Interactive counter contract workflow.
Deploys InteractiveContract and drives random setValue/increment/... calls.
"""
import typing as t
from decimal import Decimal

from web3 import Web3

from config import ContractDeployConfig
from core.compiler import load_source
from core.lifecycle import ContractSession
from core.scheduler import OperationScheduler, stamp
from core.workflow import ContractBlueprint

CONTRIBUTION_ETHER = Decimal("0.00001")


class ContractDeployer:
    label = "Contract"

    def __init__(
        self,
        config: t.Optional[ContractDeployConfig] = None,
        scheduler: t.Optional[OperationScheduler] = None,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.config = config or ContractDeployConfig()
        self.scheduler = scheduler or OperationScheduler()
        self.wallet_num = wallet_num

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def blueprint(self) -> ContractBlueprint:
        return ContractBlueprint(
            contract_name="InteractiveContract",
            source=load_source("InteractiveContract.sol"),
            deploy_gas=2_000_000,
        )

    def interaction_call(self, kind: str) -> t.Tuple[t.Tuple[t.Any, ...], int]:
        """Arguments and value for one interaction type."""
        if kind == "setValue":
            return (self.scheduler.random_int(0, 999),), 0
        if kind == "contribute":
            return (), int(Web3.to_wei(CONTRIBUTION_ETHER, "ether"))
        return (), 0

    def interact(self, session: ContractSession) -> bool:
        interactions = self.config.interactions
        if not interactions.enabled:
            print(f"{stamp(self.wallet_num)} [Contract] Interactions disabled in config")
            return True

        count = self.scheduler.pick_count(interactions.count.min, interactions.count.max)
        print(f"{stamp(self.wallet_num)} [Contract] Will perform {count} interactions")

        success_count = 0
        for i in range(count):
            kind = self.scheduler.pick_one(interactions.types)
            args, value = self.interaction_call(kind)
            result = session.transact(kind, *args, value=value, label=f"interaction {i + 1}/{count} ({kind})")
            if result.success:
                success_count += 1

        try:
            value, interaction_count, last_action = session.call("getStats")
            print(f"{stamp(self.wallet_num)} [Contract] Stats: value={value}, interactions={interaction_count}, last={last_action}")
        except Exception as e:
            print(f"{stamp(self.wallet_num)} [Contract] Could not read stats: {e}")

        print(f"{stamp(self.wallet_num)} [Contract] {success_count}/{count} interactions successful")
        return success_count > 0
