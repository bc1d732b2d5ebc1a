"""
Faucet claims for the testnet automation.
reCAPTCHA solving via capsolver, the faucet claim itself, and balance polling.
"""
import math
import time
import typing as t

import requests
from tqdm import tqdm
from web3 import Web3

from config import (
    CAPTCHA_API_URL,
    CAPTCHA_MAX_ATTEMPTS,
    CAPTCHA_POLL_INTERVAL,
    CURRENCY_SYMBOL,
    FAUCET_API_URL,
    FAUCET_WEBSITE_URL,
    MAX_BACKOFF,
    RECAPTCHA_SITE_KEY,
    FaucetConfig,
)
from .scheduler import DelayPolicy, stamp

FAUCET_HEADERS: t.Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Origin": FAUCET_WEBSITE_URL,
    "Referer": FAUCET_WEBSITE_URL,
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"
    ),
    "sec-ch-ua": '"Chromium";v="134", "Not:A-Brand";v="24", "Google Chrome";v="134"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-origin",
}


class CaptchaError(RuntimeError):
    """The CAPTCHA service rejected the task or never produced a token."""


class CaptchaSolver:
    """
    Client for the capsolver task API (createTask / getTaskResult).
    """

    def __init__(
        self,
        api_key: str,
        session: t.Optional[requests.Session] = None,
        base_url: str = CAPTCHA_API_URL,
        poll_interval: float = CAPTCHA_POLL_INTERVAL,
        max_attempts: int = CAPTCHA_MAX_ATTEMPTS,
        sleep: t.Callable[[float], None] = time.sleep,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.wallet_num = wallet_num

    def _post(self, endpoint: str, payload: t.Dict[str, t.Any]) -> t.Dict[str, t.Any]:
        response = self.session.post(f"{self.base_url}/{endpoint}", json=payload, timeout=30)
        data = response.json()
        if data.get("errorId", 0) != 0:
            raise CaptchaError(f"{endpoint} failed: {data.get('errorDescription')}")
        return data

    def solve_recaptcha(self, website_url: str, website_key: str) -> str:
        """
        Solve an invisible reCAPTCHA v2 and return the response token.

        Raises:
            CaptchaError: The service returned an error or the token was not
                ready after ``max_attempts`` polls.
        """
        print(f"{stamp(self.wallet_num)} [Captcha] Solving reCAPTCHA for {website_url}...")
        task = self._post("createTask", {
            "clientKey": self.api_key,
            "task": {
                "type": "ReCaptchaV2TaskProxyLess",
                "websiteURL": website_url,
                "websiteKey": website_key,
                "isInvisible": True,
            },
        })
        task_id = task["taskId"]
        print(f"{stamp(self.wallet_num)} [Captcha] Task created, ID: {task_id}")

        for attempt in range(1, self.max_attempts + 1):
            self._sleep(self.poll_interval)
            result = self._post("getTaskResult", {"clientKey": self.api_key, "taskId": task_id})
            if result.get("status") == "ready":
                print(f"{stamp(self.wallet_num)} [Captcha] Solved")
                return result["solution"]["gRecaptchaResponse"]
            if attempt % 5 == 0:
                print(f"{stamp(self.wallet_num)} [Captcha] Waiting for solution ({attempt}/{self.max_attempts})...")

        raise CaptchaError(f"CAPTCHA solving timed out after {self.max_attempts} attempts")


class FaucetManager:
    """
    Request -> solve CAPTCHA -> claim -> poll balance.

    Claim failures are retried with exponential backoff, except a waitlist
    answer, which no retry can change.
    """

    def __init__(
        self,
        web3: Web3,
        config: t.Optional[FaucetConfig] = None,
        session: t.Optional[requests.Session] = None,
        solver: t.Optional[CaptchaSolver] = None,
        delays: t.Optional[DelayPolicy] = None,
        sleep: t.Callable[[float], None] = time.sleep,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.web3 = web3
        self.config = config or FaucetConfig()
        self.session = session or requests.Session()
        self.delays = delays or DelayPolicy()
        self._sleep = sleep
        self.wallet_num = wallet_num
        if solver is None and self.config.captcha_api_key:
            solver = CaptchaSolver(self.config.captcha_api_key, self.session, sleep=sleep, wallet_num=wallet_num)
        self.solver = solver

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [Faucet] {message}")

    def backoff(self, retry_count: int) -> float:
        return min(MAX_BACKOFF, self.config.base_wait_time * 2 ** retry_count)

    def _claim(self, address: str) -> t.Dict[str, t.Any]:
        if self.solver is None:
            raise CaptchaError("No captcha API key provided in config. Cannot request from faucet.")
        token = self.solver.solve_recaptcha(FAUCET_WEBSITE_URL, RECAPTCHA_SITE_KEY)
        self.log("Sending request to faucet API...")
        response = self.session.post(
            FAUCET_API_URL,
            json={"address": address, "recaptcha": token},
            headers=FAUCET_HEADERS,
            timeout=60,
        )
        return response.json()

    def request_faucet(self, address: str) -> bool:
        max_retries = self.config.max_retries
        for attempt in range(max_retries):
            self.log(f"Requesting tokens from faucet... (Attempt {attempt + 1}/{max_retries})")
            self.delays.pause(f"faucet request (attempt {attempt + 1})", self.wallet_num, scale=attempt + 1)
            try:
                data = self._claim(address)
            except Exception as e:
                self.log(f"Error requesting from faucet: {e}")
            else:
                if data.get("hash"):
                    self.log(f"Faucet request successful! Transaction hash: {data['hash']}")
                    self.log(f"Drip amount: {data.get('dripAmount')} {CURRENCY_SYMBOL}")
                    return True
                error = data.get("error")
                if error and "waitlist" in str(error):
                    self.log(f"Faucet access limited: {error}")
                    return False
                self.log(f"Faucet error: {error}" if error else f"Unexpected response from faucet: {data}")

            if attempt + 1 < max_retries:
                wait_time = self.backoff(attempt + 1)
                self.log(f"Waiting {wait_time} seconds before retry...")
                self._sleep(wait_time)

        self.log(f"Failed to request tokens from faucet after {max_retries} attempts")
        return False

    def wait_for_balance_increase(
        self,
        address: str,
        initial_balance: t.Optional[int] = None,
        max_wait_time: t.Optional[float] = None,
        check_interval: t.Optional[float] = None,
    ) -> bool:
        """
        Poll until the balance strictly exceeds ``initial_balance``.

        Returns:
            True on increase, False on timeout or a failed balance query.
        """
        max_wait_time = self.config.max_wait_time if max_wait_time is None else max_wait_time
        check_interval = check_interval or self.config.check_interval
        try:
            if initial_balance is None:
                initial_balance = int(self.web3.eth.get_balance(address))
            polls = max(1, math.ceil(max_wait_time / check_interval))
            with tqdm(total=polls, desc="Waiting for faucet funds", unit="poll", leave=False) as pbar:
                for _ in range(polls):
                    self._sleep(check_interval)
                    pbar.update(1)
                    balance = int(self.web3.eth.get_balance(address))
                    if balance > initial_balance:
                        self.log(
                            f"Balance increased! From {Web3.from_wei(initial_balance, 'ether')} "
                            f"to {Web3.from_wei(balance, 'ether')} {CURRENCY_SYMBOL}"
                        )
                        return True
        except Exception as e:
            self.log(f"Error waiting for balance increase: {e}")
            return False

        self.log(f"Timeout waiting for balance to increase after {max_wait_time} seconds")
        return False

    def execute(self, address: str) -> bool:
        if not self.config.enabled:
            self.log("Faucet operations disabled in config")
            return False
        try:
            initial_balance = int(self.web3.eth.get_balance(address))
            self.log(f"Initial wallet balance: {Web3.from_wei(initial_balance, 'ether')} {CURRENCY_SYMBOL}")
            if not self.request_faucet(address):
                return False
            return self.wait_for_balance_increase(address, initial_balance)
        except Exception as e:
            self.log(f"Error in faucet operations: {e}")
            return False
