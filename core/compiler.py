"""
Solidity compilation for the testnet automation.
Loads contract sources from contracts/ and compiles them with solc.
"""
import typing as t
from dataclasses import dataclass
from pathlib import Path

import solcx
from solcx.exceptions import SolcError

from config import EVM_VERSION, OPTIMIZER_RUNS, SOLC_VERSION

CONTRACT_DIR = Path(__file__).parent.parent / "contracts"
NAME_PLACEHOLDER = "{{CONTRACT_NAME}}"


class CompilationError(RuntimeError):
    """solc reported one or more errors."""


@dataclass(frozen=True)
class CompiledContract:
    name: str
    abi: t.List[t.Dict[str, t.Any]]
    bytecode: str


def load_source(filename: str) -> str:
    return (CONTRACT_DIR / filename).read_text(encoding="utf-8")


def render_template(source: str, contract_name: str) -> str:
    """Substitute the contract identifier into a templated source."""
    return source.replace(NAME_PLACEHOLDER, contract_name)


class SolidityCompiler:
    """
    Standard-JSON compilation through py-solc-x.

    Results are cached per (contract name, source) for the life of the process,
    so running the same workflow for many wallets compiles once.
    """

    _cache: t.Dict[t.Tuple[str, str], CompiledContract] = {}

    def __init__(self, version: str = SOLC_VERSION, evm_version: str = EVM_VERSION) -> None:
        self.version = version
        self.evm_version = evm_version

    def _ensure_installed(self) -> None:
        installed = {str(v) for v in solcx.get_installed_solc_versions()}
        if self.version not in installed:
            print(f"[Compiler] Installing solc {self.version}...")
            solcx.install_solc(self.version)

    def standard_input(self, source: str, contract_name: str) -> t.Dict[str, t.Any]:
        return {
            "language": "Solidity",
            "sources": {f"{contract_name}.sol": {"content": source}},
            "settings": {
                "outputSelection": {"*": {"*": ["abi", "evm.bytecode"]}},
                "optimizer": {"enabled": True, "runs": OPTIMIZER_RUNS},
                "evmVersion": self.evm_version,
            },
        }

    def compile(self, source: str, contract_name: str) -> CompiledContract:
        """
        Compile ``source`` and extract ``contract_name``.

        Raises:
            CompilationError: solc failed or the contract is missing from its output.
        """
        key = (contract_name, source)
        if key in self._cache:
            return self._cache[key]

        self._ensure_installed()
        print(f"[Compiler] Compiling {contract_name}...")
        try:
            output = solcx.compile_standard(
                self.standard_input(source, contract_name),
                solc_version=self.version,
            )
        except SolcError as e:
            raise CompilationError(f"Compilation errors: {e}") from e

        errors = [err for err in output.get("errors", []) if err.get("severity") == "error"]
        if errors:
            raise CompilationError("Compilation errors: " + ", ".join(err.get("message", "") for err in errors))

        try:
            data = output["contracts"][f"{contract_name}.sol"][contract_name]
        except KeyError as e:
            raise CompilationError(f"Contract {contract_name} not found in compiler output") from e

        compiled = CompiledContract(
            name=contract_name,
            abi=data["abi"],
            bytecode="0x" + data["evm"]["bytecode"]["object"],
        )
        self._cache[key] = compiled
        print(f"[Compiler] {contract_name} compiled successfully")
        return compiled
