"""
Contract workflow runner for the testnet automation.
compile -> deploy -> per-contract call sequence, on one shared lifecycle.
"""
import typing as t
from dataclasses import dataclass

from config import EXPLORER_URL
from .compiler import SolidityCompiler
from .lifecycle import ContractSession, TransactionLifecycle
from .scheduler import stamp


@dataclass(frozen=True)
class ContractBlueprint:
    """What to compile and how to construct it."""
    contract_name: str
    source: str
    constructor_args: t.Tuple[t.Any, ...] = ()
    deploy_gas: int = 2_000_000


class ContractWorkflow(t.Protocol):
    """Per-contract policy plugged into WorkflowRunner."""

    label: str

    @property
    def enabled(self) -> bool: ...

    def blueprint(self) -> ContractBlueprint: ...

    def interact(self, session: ContractSession) -> bool: ...


class WorkflowRunner:
    """
    Drives any ContractWorkflow through the shared lifecycle.

    Compile and deploy failures abort the workflow (there is no contract to
    talk to); call failures inside ``interact`` are the workflow's business.
    """

    def __init__(
        self,
        lifecycle: TransactionLifecycle,
        compiler: t.Optional[SolidityCompiler] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.compiler = compiler or SolidityCompiler()

    def log(self, workflow: ContractWorkflow, message: str) -> None:
        print(f"{stamp(self.lifecycle.wallet_num)} [{workflow.label}] {message}")

    def run(self, workflow: ContractWorkflow) -> bool:
        if not workflow.enabled:
            self.log(workflow, "Disabled in config")
            return True

        self.log(workflow, "Starting operations...")
        self.lifecycle.nonces.reset()
        try:
            blueprint = workflow.blueprint()
            compiled = self.compiler.compile(blueprint.source, blueprint.contract_name)
            deployed = self.lifecycle.deploy(
                compiled,
                blueprint.constructor_args,
                default_gas=blueprint.deploy_gas,
                label=f"{blueprint.contract_name} deployment",
            )
        except Exception as e:
            self.log(workflow, f"Aborting: {e}")
            return False

        session = ContractSession(self.lifecycle, deployed)
        try:
            ok = workflow.interact(session)
        except Exception as e:
            self.log(workflow, f"Error during contract calls: {e}")
            return False

        self.log(workflow, f"Completed. View contract: {EXPLORER_URL}/address/{deployed.address}")
        return ok
