"""Wallet credential resolution."""
from __future__ import annotations

import logging

from dexvault_chain.credentials import SigningCredential
from dexvault_core.datastore import Datastore
from dexvault_core.exceptions import CredentialUnavailableError, WalletNotFoundError

logger = logging.getLogger(__name__)


def resolve_credential(datastore: Datastore, wallet_name: str) -> SigningCredential:
    """
    Map a wallet name to a request-scoped signing credential.

    Raises:
        WalletNotFoundError: no wallet with that name exists
        CredentialUnavailableError: the wallet exists but its signing
            material cannot be materialized
    """
    wallet = datastore.get_wallet(wallet_name)
    if wallet is None:
        raise WalletNotFoundError(wallet_name)

    try:
        return wallet.get_key_manager()
    except CredentialUnavailableError:
        raise
    except Exception as e:
        # The underlying error may quote key material; keep only its type.
        logger.error(
            "Credential resolution failed",
            extra={"wallet": wallet_name, "error_type": type(e).__name__},
        )
        raise CredentialUnavailableError(wallet_name) from None
