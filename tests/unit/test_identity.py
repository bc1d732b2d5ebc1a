from unittest.mock import Mock

import pytest
from hypothesis import given, settings, HealthCheck, strategies as st

from core.identity import NonceTracker, load_accounts, normalize_key

KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


@pytest.fixture
def mock_web3():
    web3 = Mock()
    web3.eth.get_transaction_count.return_value = 12
    return web3


class TestNonceTracker:
    def test_first_call_queries_ledger(self, mock_web3):
        tracker = NonceTracker(mock_web3, ADDRESS)
        assert tracker.get_nonce() == 12
        mock_web3.eth.get_transaction_count.assert_called_once_with(ADDRESS)

    def test_cached_value_served_without_query(self, mock_web3):
        tracker = NonceTracker(mock_web3, ADDRESS)
        tracker.get_nonce()
        tracker.get_nonce()
        assert mock_web3.eth.get_transaction_count.call_count == 1

    def test_increment_before_init_is_noop(self, mock_web3):
        tracker = NonceTracker(mock_web3, ADDRESS)
        tracker.increment_nonce()
        assert tracker.cached is None
        assert tracker.get_nonce() == 12

    def test_reset_requeries(self, mock_web3):
        tracker = NonceTracker(mock_web3, ADDRESS)
        tracker.get_nonce()
        tracker.increment_nonce()
        mock_web3.eth.get_transaction_count.return_value = 40
        tracker.reset()
        assert tracker.get_nonce() == 40
        assert mock_web3.eth.get_transaction_count.call_count == 2

    @given(start=st.integers(min_value=0, max_value=10 ** 9), n=st.integers(min_value=1, max_value=50))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_nonces_strictly_increase(self, mock_web3, start, n):
        mock_web3.eth.get_transaction_count.return_value = start
        tracker = NonceTracker(mock_web3, ADDRESS)
        nonces = []
        for _ in range(n):
            nonces.append(tracker.get_nonce())
            tracker.increment_nonce()
        assert nonces == list(range(start, start + n))


class TestAccounts:
    def test_prefix_added(self):
        assert normalize_key(KEY) == "0x" + KEY
        assert normalize_key("0x" + KEY) == "0x" + KEY

    def test_load_accounts_with_and_without_prefix(self):
        accounts = load_accounts([KEY, "0x" + KEY])
        assert [a.address for a in accounts] == [ADDRESS, ADDRESS]

    def test_invalid_key_raises(self):
        with pytest.raises(ValueError):
            load_accounts(["not-a-key"])
