"""
Contract workflows for the testnet automation.
"""

from .batch import BatchOperationManager
from .counter import ContractDeployer
from .erc20 import ERC20TokenDeployer
from .nft import NFTManager
from .tester import ContractTesterManager

__all__ = [
    "BatchOperationManager",
    "ContractDeployer",
    "ContractTesterManager",
    "ERC20TokenDeployer",
    "NFTManager",
]
