import pytest

from core.compiler import CompiledContract
from core.lifecycle import ContractSession, DeployedContract, DeploymentError

CONTRACT_ADDRESS = "0x" + "12" * 20

COMPILED = CompiledContract(name="InteractiveContract", abi=[], bytecode="0x6080")


class TestBuild:
    def test_intent_is_priced_and_estimated(self, lifecycle, fake_web3):
        intent = lifecycle.build(CONTRACT_ADDRESS, "0xabcd")
        assert intent.nonce == 7
        assert intent.gas_price == 1_100_000_000
        assert intent.gas == 60_000
        assert intent.chain_id == 8408

    def test_estimation_template_has_no_gas_fields(self, lifecycle, fake_web3):
        lifecycle.build(CONTRACT_ADDRESS, "0xabcd", value=5)
        (template,) = fake_web3.eth.estimated
        assert "gas" not in template
        assert "gasPrice" not in template
        assert template["value"] == 5
        assert template["to"] == CONTRACT_ADDRESS

    def test_deploy_template_has_no_recipient(self, lifecycle, fake_web3):
        lifecycle.build(None, "0x6080")
        assert "to" not in fake_web3.eth.estimated[0]

    def test_estimate_failure_uses_operation_default(self, lifecycle, fake_web3):
        fake_web3.eth.estimate_error = ValueError("execution reverted")
        assert lifecycle.build(None, "0x6080", default_gas=2_000_000).gas == 2_000_000

    def test_retry_raises_price(self, lifecycle):
        assert lifecycle.build(CONTRACT_ADDRESS, retry_count=1).gas_price == 1_430_000_000

    def test_build_does_not_consume_nonce(self, lifecycle):
        lifecycle.build(CONTRACT_ADDRESS)
        assert lifecycle.build(CONTRACT_ADDRESS).nonce == 7


class TestExecute:
    def test_success_advances_nonce(self, lifecycle, fake_web3):
        result = lifecycle.execute(CONTRACT_ADDRESS, "0x")
        assert result.success
        assert result.tx_hash == "0x" + "01" * 32
        assert lifecycle.nonces.cached == 8
        assert len(fake_web3.eth.sent) == 1

    def test_consecutive_passes_get_distinct_nonces(self, lifecycle, fake_web3):
        for _ in range(3):
            assert lifecycle.execute(CONTRACT_ADDRESS, "0x").success
        assert [tx["nonce"] for tx in fake_web3.eth.estimated] == [7, 8, 9]
        assert fake_web3.eth.count_queries == 1

    def test_broadcast_failure_keeps_increment(self, lifecycle, fake_web3):
        fake_web3.eth.send_error = ConnectionError("rpc reset")
        result = lifecycle.execute(CONTRACT_ADDRESS, "0x")
        assert not result.success
        assert "rpc reset" in result.error
        assert lifecycle.nonces.cached == 8

    def test_reverted_receipt_is_failure(self, lifecycle, fake_web3):
        fake_web3.eth.receipt_status = 0
        result = lifecycle.execute(CONTRACT_ADDRESS, "0x")
        assert not result.success
        assert "reverted" in result.error
        assert result.tx_hash is not None

    def test_nonce_query_failure_is_failure(self, lifecycle, fake_web3, monkeypatch):
        def boom(address):
            raise ConnectionError("unreachable")
        monkeypatch.setattr(fake_web3.eth, "get_transaction_count", boom)
        result = lifecycle.execute(CONTRACT_ADDRESS, "0x")
        assert not result.success
        assert fake_web3.eth.sent == []


class TestDeploy:
    def test_returns_contract_address(self, lifecycle, fake_web3):
        fake_web3.eth.contract_address = CONTRACT_ADDRESS
        deployed = lifecycle.deploy(COMPILED, ("Token", "TKN", 18))
        assert deployed.address == CONTRACT_ADDRESS
        fake_web3.eth.contract_mock.constructor.assert_called_with("Token", "TKN", 18)

    def test_missing_address_raises(self, lifecycle, fake_web3):
        with pytest.raises(DeploymentError):
            lifecycle.deploy(COMPILED)

    def test_reverted_deployment_raises(self, lifecycle, fake_web3):
        fake_web3.eth.contract_address = CONTRACT_ADDRESS
        fake_web3.eth.receipt_status = 0
        with pytest.raises(DeploymentError):
            lifecycle.deploy(COMPILED)


class TestContractSession:
    @pytest.fixture
    def session(self, lifecycle):
        return ContractSession(lifecycle, DeployedContract(CONTRACT_ADDRESS, [], "0x" + "00" * 32))

    def test_transact_encodes_call(self, session, fake_web3):
        result = session.transact("setValue", 42, label="interaction")
        assert result.success
        fake_web3.eth.contract_mock.encode_abi.assert_called_with("setValue", args=[42])
        assert fake_web3.eth.estimated[0]["data"] == "0xdeadbeef"

    def test_encode_failure_sends_nothing(self, session, fake_web3):
        fake_web3.eth.contract_mock.encode_abi.side_effect = ValueError("bad args")
        result = session.transact("setValue", "nope")
        assert not result.success
        assert fake_web3.eth.sent == []
        assert session.lifecycle.nonces.cached is None

    def test_call_reads_view(self, session, fake_web3):
        fake_web3.eth.contract_mock.functions.__getitem__.return_value.return_value.call.return_value = 3
        assert session.call("getStats") == 3
