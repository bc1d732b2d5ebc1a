"""
Core package for the testnet automation.
"""

from .identity import NonceTracker
from .gas import GasEstimator, GasPricer
from .lifecycle import ContractSession, TransactionLifecycle, TxResult
from .scheduler import DelayPolicy, OperationScheduler
from .workflow import WorkflowRunner

__all__ = [
    "ContractSession",
    "DelayPolicy",
    "GasEstimator",
    "GasPricer",
    "NonceTracker",
    "OperationScheduler",
    "TransactionLifecycle",
    "TxResult",
    "WorkflowRunner",
]
