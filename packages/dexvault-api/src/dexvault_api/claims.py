"""Typed views over the signed claim set.

The action payload travels as an opaque JSON string inside the verified
token claims, never in the HTTP body, so a caller cannot present a payload or
a wallet name other than the one that was signed. The same string is decoded
into as many typed views as a handler needs.
"""
from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from dexvault_core.exceptions import ClaimsMissingError, PayloadDecodeError
from dexvault_core.messages import BasicMessage

from .authn import AuthenticatedRequest

M = TypeVar("M", bound=BaseModel)

DEFAULT_CLAIM = "payload"


def _summarize(exc: ValidationError, limit: int = 3) -> str:
    parts = []
    for error in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in error.get("loc", ())) or "payload"
        parts.append(f"{loc}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


def decode_signed_claim(
    claims: Any,
    target_type: Type[M],
    claim_key: str = DEFAULT_CLAIM,
) -> M:
    """
    Decode the JSON string stored under ``claim_key`` into ``target_type``.

    Raises:
        ClaimsMissingError: the claim map is absent or malformed, or the entry
            is missing or not a string
        PayloadDecodeError: the string is not valid data for ``target_type``
    """
    if not isinstance(claims, Mapping):
        raise ClaimsMissingError("Failed to get JWT claims.")

    raw = claims.get(claim_key)
    if not isinstance(raw, str):
        raise ClaimsMissingError(f"Claim '{claim_key}' is missing or not a string.")

    try:
        return target_type.model_validate_json(raw)
    except ValidationError as e:
        raise PayloadDecodeError(
            f"Payload is not a valid {target_type.__name__}: {_summarize(e)}",
            details={"target": target_type.__name__},
        ) from e


def extract_payload(
    request: AuthenticatedRequest,
    target_type: Type[M],
    claim_key: str = DEFAULT_CLAIM,
) -> M:
    """The declared intent: the action-specific view of the signed payload."""
    return decode_signed_claim(request.claims, target_type, claim_key)


def extract_signed_subclaim(
    request: AuthenticatedRequest,
    target_type: Type[M] = BasicMessage,
    claim_key: str = DEFAULT_CLAIM,
) -> M:
    """The authorized intent: the view naming the target wallet."""
    return decode_signed_claim(request.claims, target_type, claim_key)
