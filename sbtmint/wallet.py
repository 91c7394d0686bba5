"""Wallet provider capabilities backed by web3.py.

The minter never touches web3 directly: it is handed a ``WalletProvider``
that can (1) authorize accounts and (2) send a contract transaction.

    NodeWalletProvider      - accounts managed by the connected node or an
                              EIP-1193 bridge (``eth_requestAccounts``)
    LocalKeyWalletProvider  - a single account signed locally with eth-account
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from eth_account import Account
from web3 import Web3

from sbtmint.utils import WalletRejected, WalletUnavailable

if TYPE_CHECKING:
    from sbtmint.config import Config

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001
# JSON-RPC "Method not found"
METHOD_NOT_FOUND_CODE = -32601

MINT_SBT_ABI: list[dict[str, Any]] = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "title", "type": "string"},
            {"name": "doi", "type": "string"},
            {"name": "repository", "type": "string"},
            {"name": "extra", "type": "uint256"},
        ],
        "name": "mintSBT",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def rpc_error_code(exc: BaseException) -> int | None:
    """Extract a JSON-RPC error code from a web3 exception, if present."""
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, dict):
        error = response.get("error")
        if isinstance(error, dict) and "code" in error:
            return error["code"]
    for arg in exc.args:
        if isinstance(arg, dict) and "code" in arg:
            return arg["code"]
    return None


class WalletProvider(ABC):
    """Host capability granting access to a user-controlled account."""

    @abstractmethod
    def is_available(self) -> bool:
        """True if a connection to the wallet/node can be used right now."""

    @abstractmethod
    def request_accounts(self) -> list[str]:
        """Ask for account authorization. Returns checksum addresses in order.

        Raises ``WalletRejected`` if the holder declines and
        ``WalletUnavailable`` if no connection exists.
        """

    @abstractmethod
    def send_contract_transaction(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        sender: str,
    ) -> str:
        """Submit a state-mutating call and return the transaction hash.

        Returns as soon as the node accepts the transaction; does not wait
        for it to be mined.
        """


class NodeWalletProvider(WalletProvider):
    """Accounts unlocked on the node (or exposed by an EIP-1193 bridge)."""

    def __init__(self, w3: Web3) -> None:
        self.w3 = w3

    def is_available(self) -> bool:
        try:
            return bool(self.w3.is_connected())
        except Exception:
            logger.warning("Wallet node connectivity check failed", exc_info=True)
            return False

    def request_accounts(self) -> list[str]:
        if not self.is_available():
            raise WalletUnavailable("Wallet node is not reachable")

        response = self.w3.provider.make_request("eth_requestAccounts", [])
        error = response.get("error") if isinstance(response, dict) else None
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            if code == USER_REJECTED_CODE:
                raise WalletRejected(error.get("message", "User rejected the request"))
            if code != METHOD_NOT_FOUND_CODE:
                raise WalletUnavailable(f"eth_requestAccounts failed: {error}")
            # Plain nodes do not implement eth_requestAccounts.
            accounts = list(self.w3.eth.accounts)
        else:
            accounts = list(response.get("result") or [])

        return [Web3.to_checksum_address(a) for a in accounts]

    def send_contract_transaction(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        sender: str,
    ) -> str:
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=abi,
        )
        fn = getattr(contract.functions, function_name)(*args)
        try:
            tx_hash = fn.transact({"from": sender})
        except Exception as exc:
            if rpc_error_code(exc) == USER_REJECTED_CODE:
                raise WalletRejected(str(exc)) from exc
            raise
        return Web3.to_hex(tx_hash)


class LocalKeyWalletProvider(WalletProvider):
    """Single account whose transactions are signed in-process."""

    def __init__(self, w3: Web3, private_key: str) -> None:
        self.w3 = w3
        self._account = Account.from_key(private_key) if private_key else None

    @property
    def address(self) -> str | None:
        return self._account.address if self._account else None

    def is_available(self) -> bool:
        if self._account is None:
            return False
        try:
            return bool(self.w3.is_connected())
        except Exception:
            logger.warning("Wallet node connectivity check failed", exc_info=True)
            return False

    def request_accounts(self) -> list[str]:
        if self._account is None:
            raise WalletUnavailable("No signing key configured")
        return [self._account.address]

    def send_contract_transaction(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        sender: str,
    ) -> str:
        if self._account is None:
            raise WalletUnavailable("No signing key configured")
        if Web3.to_checksum_address(sender) != self._account.address:
            raise WalletRejected(f"Signing key does not control {sender}")

        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=abi,
        )
        fn = getattr(contract.functions, function_name)(*args)
        tx = fn.build_transaction({
            "from": self._account.address,
            "nonce": self.w3.eth.get_transaction_count(self._account.address),
            "chainId": self.w3.eth.chain_id,
        })
        signed = self._account.sign_transaction(tx)
        # eth-account renamed rawTransaction -> raw_transaction in 0.13
        raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction")
        tx_hash = self.w3.eth.send_raw_transaction(raw)
        return Web3.to_hex(tx_hash)


def create_wallet_provider(config: Config) -> WalletProvider | None:
    """Build the provider selected by ``wallet_mode`` (None for ``none``)."""
    if config.wallet_mode == "none":
        return None
    w3 = Web3(Web3.HTTPProvider(config.eth_rpc_url))
    if config.wallet_mode == "local_key":
        return LocalKeyWalletProvider(w3, config.wallet_private_key)
    return NodeWalletProvider(w3)
