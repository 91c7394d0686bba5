"""Credential minter - turns a verified submission into an SBT transaction."""

from __future__ import annotations

import logging
import threading
from typing import Any

from sbtmint.models import MintErrorKind, MintFailure, MintOutcome, MintResult
from sbtmint.utils import SubmissionCancelled, WalletRejected, WalletUnavailable
from sbtmint.wallet import MINT_SBT_ABI, WalletProvider

logger = logging.getLogger(__name__)

DEFAULT_CONTRACT_ADDRESS = "0xc3c76fD097FBEa31B213660543f8E6166538Bb42"
MINT_FUNCTION = "mintSBT"
# Reserved uint256 extension slot on mintSBT, always zero for now.
RESERVED_EXTRA = 0


class CredentialMinter:
    """Mint an SBT to the first account the wallet authorizes.

    Callers must pass the exact title/identifier/repository values that were
    verified. Every failure is returned as a ``MintFailure`` carrying the
    underlying cause; nothing is retried.
    """

    def __init__(
        self,
        wallet: WalletProvider | None,
        *,
        contract_address: str = DEFAULT_CONTRACT_ADDRESS,
        abi: list[dict[str, Any]] | None = None,
    ) -> None:
        self.wallet = wallet
        self.contract_address = contract_address
        self.abi = abi if abi is not None else MINT_SBT_ABI

    def mint(
        self,
        title: str,
        identifier: str,
        repository_link: str = "",
        cancel_event: threading.Event | None = None,
    ) -> MintOutcome:
        """Authorize an account, then send ``mintSBT``.

        *cancel_event* is checked once the wallet has answered the account
        request; if it is set by then, ``SubmissionCancelled`` is raised and
        no transaction is sent.
        """
        if self.wallet is None or not self.wallet.is_available():
            logger.warning("Mint %s: no wallet provider available", identifier)
            return MintFailure(MintErrorKind.NO_WALLET, "No wallet provider available")

        try:
            accounts = self.wallet.request_accounts()
        except WalletRejected as exc:
            logger.warning("Mint %s: account authorization declined: %s", identifier, exc)
            return MintFailure(MintErrorKind.USER_DECLINED, str(exc))
        except WalletUnavailable as exc:
            logger.warning("Mint %s: wallet unavailable: %s", identifier, exc)
            return MintFailure(MintErrorKind.NO_WALLET, str(exc))
        except Exception as exc:
            logger.warning("Mint %s: account authorization failed", identifier, exc_info=True)
            return MintFailure(MintErrorKind.TRANSACTION_FAILED, str(exc))

        if not accounts:
            logger.warning("Mint %s: wallet authorized no accounts", identifier)
            return MintFailure(MintErrorKind.NO_WALLET, "Wallet authorized no accounts")

        if cancel_event is not None and cancel_event.is_set():
            logger.info("Mint %s: cancelled while awaiting wallet approval", identifier)
            raise SubmissionCancelled(
                f"Submission for {identifier} cancelled before the transaction was sent"
            )

        beneficiary = accounts[0]
        args = [beneficiary, title, identifier, repository_link or "", RESERVED_EXTRA]
        try:
            tx_hash = self.wallet.send_contract_transaction(
                self.contract_address, self.abi, MINT_FUNCTION, args, sender=beneficiary,
            )
        except WalletRejected as exc:
            logger.warning("Mint %s: transaction declined: %s", identifier, exc)
            return MintFailure(MintErrorKind.USER_DECLINED, str(exc))
        except WalletUnavailable as exc:
            logger.warning("Mint %s: wallet unavailable: %s", identifier, exc)
            return MintFailure(MintErrorKind.NO_WALLET, str(exc))
        except Exception as exc:
            logger.warning("Mint %s: transaction failed", identifier, exc_info=True)
            return MintFailure(MintErrorKind.TRANSACTION_FAILED, str(exc))

        logger.info("Mint %s: submitted tx %s to %s", identifier, tx_hash, beneficiary)
        return MintResult(transaction_reference=tx_hash)
