"""
Network management for the testnet automation.
Web3 connection & HTTP session management.
"""
import typing as t

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.providers import HTTPProvider

from config import HTTP_RETRIES, RPC_URL


def create_session(proxy: t.Optional[str] = None, retries: int = HTTP_RETRIES) -> requests.Session:
    """
    Creates an HTTP session with connection pooling and retries on 5xx responses.

    Args:
        proxy: Optional proxy URL applied to both http and https traffic.
        retries: Total retry budget for the adapter.
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=10,
        pool_maxsize=10,
        max_retries=Retry(
            total=retries,
            backoff_factor=1.0,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=None,  # JSON-RPC and faucet calls are POSTs
        ),
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if proxy:
        session.proxies = {"http": proxy, "https": proxy}
    return session


class ConnectionManager:
    """
    Owns the process-wide RPC session and the cached Web3 instance.
    """

    def __init__(self, rpc_url: str = RPC_URL, timeout: int = 120) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = create_session()
        self._web3: t.Optional[Web3] = None

    def get_web3(self) -> Web3:
        """
        Returns the Web3 instance bound to the shared session.
        No connectivity check here; the first RPC call surfaces failures.
        """
        if self._web3 is None:
            provider = HTTPProvider(
                self.rpc_url,
                session=self._session,
                request_kwargs={"timeout": self.timeout},
            )
            self._web3 = Web3(provider)
        return self._web3

    def http_session(self, proxy: t.Optional[str] = None) -> requests.Session:
        """Session for external HTTP APIs; a fresh one when a proxy is given."""
        if proxy:
            return create_session(proxy)
        return self._session
