"""Wallet-scoped permission policy."""
from __future__ import annotations

import logging
from typing import Optional

from .datastore import Datastore
from .exceptions import PreconditionFailedError
from .permissions import Permission

logger = logging.getLogger(__name__)


def is_permitted(
    datastore: Optional[Datastore],
    user: str,
    wallet: str,
    action: Permission,
) -> bool:
    """
    Answer whether ``user`` may perform ``action`` on ``wallet``.

    ``wallet`` must come from the signed BasicMessage, never from the action
    payload. Raises PreconditionFailedError before any lookup when the
    datastore or the user is missing.
    """
    if datastore is None:
        raise PreconditionFailedError("No datastore could be found.")
    if not user:
        raise PreconditionFailedError("No user could be found.")

    permitted = bool(datastore.is_permitted(user, wallet, action))
    if not permitted:
        logger.info(
            "Permission check denied",
            extra={"user": user, "wallet": wallet, "action": action.value},
        )
    return permitted
