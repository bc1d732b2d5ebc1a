import json
from decimal import Decimal

import pytest

from config import (
    AppConfig,
    ConfigError,
    FaucetConfig,
    Range,
    load_config,
    load_lines,
)


class TestRange:
    def test_parse_object(self):
        assert Range.parse({"n": {"min": 2, "max": 6}}, "n", Range(1, 1)) == Range(2, 6)

    def test_parse_bare_integer(self):
        assert Range.parse({"n": 4}, "n", Range(1, 9)) == Range(4, 4)

    def test_parse_missing_uses_default(self):
        assert Range.parse({}, "n", Range(3, 8)) == Range(3, 8)

    def test_parse_missing_end_uses_default_end(self):
        assert Range.parse({"n": {"min": 5}}, "n", Range(3, 8)) == Range(5, 8)

    def test_inverted_range_collapses_to_min(self):
        assert Range(7, 2) == Range(7, 7)
        assert Range.parse({"n": {"min": 9, "max": 1}}, "n", Range(1, 1)) == Range(9, 9)

    def test_floor_applied(self):
        assert Range.parse({"n": {"min": 1, "max": 50}}, "n", Range(100, 1000), floor=10) == Range(10, 50)

    def test_wrong_type_rejected(self):
        with pytest.raises(ConfigError):
            Range.parse({"n": {"min": "two"}}, "n", Range(1, 1))


class TestAppConfig:
    def test_empty_document_gives_defaults(self):
        config = AppConfig.from_dict({})
        assert config == AppConfig()
        assert config.erc20.mint_amount == Range(1_000_000, 10_000_000)
        assert config.nft.supply == Range(100, 1000)
        assert config.contract_deploy.interactions.count == Range(3, 8)
        assert config.faucet.max_retries == 3

    def test_nested_sections(self):
        config = AppConfig.from_dict({
            "enable_transfer": False,
            "transfer_amount_percentage": 50,
            "gas_price_multiplier": 1.5,
            "erc20": {"burn_percentage": 25, "mint_amount": {"min": 10, "max": 20}},
            "nft": {"enable_nft": False},
            "faucet": {"captcha_api_key": "CAP-123", "max_retries": 5},
            "contract_interactions": {"types": ["setValue"]},
        })
        assert config.transfer.enabled is False
        assert config.transfer.amount_percentage == 50
        assert config.gas.price_multiplier == 1.5
        assert config.erc20.burn_percentage == 25
        assert config.erc20.mint_amount == Range(10, 20)
        assert config.nft.enabled is False
        assert config.faucet == FaucetConfig(captcha_api_key="CAP-123", max_retries=5)
        assert config.contract_deploy.interactions.types == ["setValue"]

    def test_partial_gas_section_keeps_other_defaults(self):
        config = AppConfig.from_dict({"gas": {"min_gwei": 0.01}})
        assert config.gas.min_gwei == Decimal("0.01")
        assert config.gas.max_gwei == Decimal("200")

    def test_unrelated_document_keeps_gas_defaults(self):
        config = AppConfig.from_dict({"enable_transfer": True})
        assert config.gas.min_gwei == Decimal("0.0001")
        assert config.gas.max_gwei == Decimal("200")

    def test_gas_bounds_are_decimal(self):
        config = AppConfig.from_dict({"gas": {"min_gwei": 0.5, "max_gwei": 50}})
        assert config.gas.min_gwei == Decimal("0.5")
        assert config.gas.max_gwei == Decimal("50")

    @pytest.mark.parametrize("document", [
        {"enable_transfer": "yes"},
        {"erc20": {"burn_percentage": "ten"}},
        {"nft": []},
        {"max_retries": True},
        {"transfer_amount_percentage": -1},
        {"operation_randomization": {"operations_to_run": "faucet"}},
        {"gas": {"min_gwei": 10, "max_gwei": 1}},
    ])
    def test_badly_typed_leaves_rejected(self, document):
        with pytest.raises(ConfigError):
            AppConfig.from_dict(document)

    def test_root_must_be_object(self):
        with pytest.raises(ConfigError):
            AppConfig.from_dict([])


class TestLoading:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "absent.json")) == AppConfig()

    def test_unparsable_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(str(path)) == AppConfig()

    def test_loads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"batch_operations": {"operations_per_batch": 3}}))
        assert load_config(str(path)).batch_operations.operations_per_batch == Range(3, 3)

    def test_load_lines_strips_blanks(self, tmp_path):
        path = tmp_path / "pk.txt"
        path.write_text("  abc \n\n def\n\n")
        assert load_lines(str(path)) == ["abc", "def"]

    def test_required_file_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_lines(str(tmp_path / "pk.txt"))

    def test_optional_file_missing_is_empty(self, tmp_path):
        assert load_lines(str(tmp_path / "proxy.txt"), required=False) == []
