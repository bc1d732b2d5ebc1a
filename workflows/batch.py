"""
Batch processor workflow.
Random operation batches submitted as a single executeBatch call.
"""
import typing as t
from dataclasses import dataclass

from config import BatchConfig
from core.compiler import load_source
from core.lifecycle import ContractSession
from core.scheduler import OperationScheduler, stamp
from core.workflow import ContractBlueprint

BATCH_OPERATIONS: t.List[str] = [
    "setValue",
    "incrementValue",
    "decrementValue",
    "squareValue",
    "resetValue",
    "multiplyValue",
]


@dataclass(frozen=True)
class OperationBatch:
    operations: t.Tuple[str, ...]
    parameters: t.Tuple[int, ...]

    def pairs(self) -> t.List[t.Tuple[str, int]]:
        return list(zip(self.operations, self.parameters))


class BatchOperationManager:
    label = "Batch"

    def __init__(
        self,
        config: t.Optional[BatchConfig] = None,
        scheduler: t.Optional[OperationScheduler] = None,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.config = config or BatchConfig()
        self.scheduler = scheduler or OperationScheduler()
        self.wallet_num = wallet_num

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [Batch] {message}")

    def blueprint(self) -> ContractBlueprint:
        return ContractBlueprint(
            contract_name="BatchProcessor",
            source=load_source("BatchProcessor.sol"),
            deploy_gas=2_000_000,
        )

    def parameter_for(self, operation: str) -> int:
        if operation == "setValue":
            return self.scheduler.random_int(1, 100)
        if operation == "multiplyValue":
            return self.scheduler.random_int(2, 6)
        return 0

    def generate_batch(self) -> OperationBatch:
        size_range = self.config.operations_per_batch
        size = self.scheduler.pick_count(size_range.min, size_range.max)
        operations = [self.scheduler.pick_one(BATCH_OPERATIONS) for _ in range(size)]
        return OperationBatch(
            operations=tuple(operations),
            parameters=tuple(self.parameter_for(op) for op in operations),
        )

    def _log_status(self, session: ContractSession) -> None:
        try:
            operation_count, last_value = session.call("getStatus")
            self.log(f"Status - operation count: {operation_count}, last value: {last_value}")
        except Exception as e:
            self.log(f"Could not read status: {e}")

    def test_individual_operation(self, session: ContractSession) -> bool:
        value = self.scheduler.random_int(1, 100)
        result = session.transact("setValue", value, label="individual operation test")
        if result.success:
            self._log_status(session)
        return result.success

    def execute_batch(self, session: ContractSession) -> bool:
        batch = self.generate_batch()
        self.log(f"Executing batch: {', '.join(f'{op}({p})' for op, p in batch.pairs())}")
        result = session.transact(
            "executeBatch",
            list(batch.operations),
            list(batch.parameters),
            label="batch execution",
        )
        if result.success:
            self._log_status(session)
        return result.success

    def interact(self, session: ContractSession) -> bool:
        self.test_individual_operation(session)

        num_batches = self.scheduler.pick_count(1, 2)
        self.log(f"Will execute {num_batches} batches")
        successes = 0
        for i in range(num_batches):
            if self.execute_batch(session):
                successes += 1
            if i < num_batches - 1:
                session.lifecycle.delays.pause(f"next batch ({i + 2}/{num_batches})", self.wallet_num)
        self.log(f"{successes}/{num_batches} batches successful")
        return successes > 0
