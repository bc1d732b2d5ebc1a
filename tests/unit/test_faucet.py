from unittest.mock import Mock

import pytest

from config import FaucetConfig
from core.faucet import CaptchaError, CaptchaSolver, FaucetManager
from core.scheduler import DelayPolicy

ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    return response


def make_session(*payloads):
    session = Mock()
    session.post.side_effect = [json_response(p) for p in payloads]
    return session


class TestCaptchaSolver:
    def test_polls_until_ready(self):
        session = make_session(
            {"errorId": 0, "taskId": "task-1"},
            {"errorId": 0, "status": "processing"},
            {"errorId": 0, "status": "ready", "solution": {"gRecaptchaResponse": "token-abc"}},
        )
        sleep = Mock()
        solver = CaptchaSolver("key", session, sleep=sleep)
        assert solver.solve_recaptcha("https://faucet.example", "site-key") == "token-abc"
        assert sleep.call_count == 2
        _, kwargs = session.post.call_args_list[0]
        assert kwargs["json"]["task"]["type"] == "ReCaptchaV2TaskProxyLess"
        assert kwargs["json"]["task"]["isInvisible"] is True

    def test_create_error_raises(self):
        session = make_session({"errorId": 1, "errorDescription": "ERROR_KEY_DENIED_ACCESS"})
        solver = CaptchaSolver("bad-key", session, sleep=Mock())
        with pytest.raises(CaptchaError, match="ERROR_KEY_DENIED_ACCESS"):
            solver.solve_recaptcha("https://faucet.example", "site-key")

    def test_times_out(self):
        payloads = [{"errorId": 0, "taskId": "task-1"}] + [{"errorId": 0, "status": "processing"}] * 3
        solver = CaptchaSolver("key", make_session(*payloads), max_attempts=3, sleep=Mock())
        with pytest.raises(CaptchaError, match="timed out"):
            solver.solve_recaptcha("https://faucet.example", "site-key")


class TestFaucetManager:
    def make_manager(self, responses=(), balances=(0,), solver=None, **config):
        web3 = Mock()
        web3.eth.get_balance.side_effect = list(balances)
        if solver is None:
            solver = Mock()
            solver.solve_recaptcha.return_value = "token"
        sleep = Mock()
        manager = FaucetManager(
            web3,
            FaucetConfig(**config),
            session=make_session(*responses),
            solver=solver,
            delays=DelayPolicy.disabled(),
            sleep=sleep,
            wallet_num=1,
        )
        return manager, sleep

    @pytest.mark.parametrize("retry, expected", [(1, 20), (2, 40), (4, 160), (5, 300), (9, 300)])
    def test_backoff(self, retry, expected):
        manager, _ = self.make_manager()
        assert manager.backoff(retry) == expected

    def test_successful_claim(self):
        manager, sleep = self.make_manager([{"hash": "0xabc", "dripAmount": "1"}])
        assert manager.request_faucet(ADDRESS) is True
        sleep.assert_not_called()
        _, kwargs = manager.session.post.call_args
        assert kwargs["json"] == {"address": ADDRESS, "recaptcha": "token"}

    def test_waitlist_is_terminal(self):
        manager, sleep = self.make_manager([{"error": "Address is on the waitlist"}], max_retries=3)
        assert manager.request_faucet(ADDRESS) is False
        assert manager.session.post.call_count == 1
        sleep.assert_not_called()

    def test_other_errors_back_off_and_retry(self):
        responses = [{"error": "rate limited"}, {"error": "rate limited"}, {"hash": "0xabc"}]
        manager, sleep = self.make_manager(responses, max_retries=3)
        assert manager.request_faucet(ADDRESS) is True
        assert [c.args[0] for c in sleep.call_args_list] == [20, 40]

    def test_exhausted_retries(self):
        manager, sleep = self.make_manager([{}, {}], max_retries=2)
        assert manager.request_faucet(ADDRESS) is False
        assert [c.args[0] for c in sleep.call_args_list] == [20]

    def test_missing_api_key_fails_every_attempt(self):
        web3 = Mock()
        manager = FaucetManager(web3, FaucetConfig(max_retries=2), session=Mock(), delays=DelayPolicy.disabled(), sleep=Mock())
        assert manager.solver is None
        assert manager.request_faucet(ADDRESS) is False
        manager.session.post.assert_not_called()

    def test_api_key_creates_solver(self):
        manager = FaucetManager(Mock(), FaucetConfig(captcha_api_key="CAP-1"), session=Mock(), sleep=Mock())
        assert isinstance(manager.solver, CaptchaSolver)
        assert manager.solver.api_key == "CAP-1"

    def test_balance_increase_detected(self):
        manager, sleep = self.make_manager(balances=[100, 100, 150])
        assert manager.wait_for_balance_increase(ADDRESS, 100, max_wait_time=20, check_interval=5)
        assert sleep.call_count == 3

    def test_balance_timeout(self):
        manager, sleep = self.make_manager(balances=[100] * 10)
        assert manager.wait_for_balance_increase(ADDRESS, 100, max_wait_time=12, check_interval=5) is False
        assert sleep.call_count == 3

    def test_execute_full_flow(self):
        manager, _ = self.make_manager([{"hash": "0xabc"}], balances=[0, 0, 10 ** 18])
        assert manager.execute(ADDRESS) is True

    def test_execute_disabled(self):
        manager, _ = self.make_manager(enabled=False)
        assert manager.execute(ADDRESS) is False
        manager.web3.eth.get_balance.assert_not_called()
