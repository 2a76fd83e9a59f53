"""Tests for token verification and signed claim extraction."""
from __future__ import annotations

import json
import time

import pytest

from dexvault_api.authn import AuthenticatedRequest, TokenVerifier
from dexvault_api.claims import decode_signed_claim, extract_payload, extract_signed_subclaim
from dexvault_core.exceptions import ClaimsMissingError, PayloadDecodeError, PermissionDeniedError
from dexvault_core.messages import BasicMessage, CreateOrder, TokenBurn


def _request(payload, user: str = "alice") -> AuthenticatedRequest:
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    return AuthenticatedRequest(user=user, claims={"user": user, "payload": raw})


class TestDecodeSignedClaim:
    def test_claims_not_a_mapping(self):
        with pytest.raises(ClaimsMissingError, match="Failed to get JWT claims"):
            decode_signed_claim(None, BasicMessage)

    def test_payload_entry_missing(self):
        with pytest.raises(ClaimsMissingError):
            decode_signed_claim({"user": "alice"}, BasicMessage)

    def test_payload_entry_not_a_string(self):
        with pytest.raises(ClaimsMissingError):
            decode_signed_claim({"payload": {"Wallet": "main"}}, BasicMessage)

    def test_payload_not_json(self):
        with pytest.raises(PayloadDecodeError):
            decode_signed_claim({"payload": "{not json"}, BasicMessage)

    def test_payload_wrong_shape(self):
        with pytest.raises(PayloadDecodeError, match="TokenBurn"):
            decode_signed_claim({"payload": '{"Symbol": "XYZ"}'}, TokenBurn)

    def test_custom_claim_key(self):
        msg = decode_signed_claim({"data": '{"Wallet": "main"}'}, BasicMessage, claim_key="data")
        assert msg.wallet == "main"


class TestDualDecode:
    def test_both_views_from_one_claim(self):
        request = _request({
            "Wallet": "main",
            "Symbol": "BNB_BTC",
            "Side": 1,
            "Price": 100,
            "Quantity": 5,
        })

        order = extract_payload(request, CreateOrder)
        signed = extract_signed_subclaim(request)

        assert isinstance(signed, BasicMessage)
        assert signed.wallet == "main"
        assert order.symbol == "BNB_BTC"

    def test_payload_without_wallet(self):
        request = _request({"Symbol": "XYZ", "Amount": 1})
        assert extract_payload(request, TokenBurn).amount == 1
        with pytest.raises(PayloadDecodeError):
            extract_signed_subclaim(request)


@pytest.fixture
def verifier(settings) -> TokenVerifier:
    return TokenVerifier(settings.jwt_secret, settings.jwt_algorithm_list)


class TestTokenVerifier:
    def test_valid_token(self, verifier, make_token):
        auth = verifier.verify(make_token("alice", {"Wallet": "main"}))

        assert auth.user == "alice"
        assert json.loads(auth.claims["payload"]) == {"Wallet": "main"}

    def test_wrong_secret(self, verifier, make_token):
        token = make_token("alice", secret="another_secret_that_is_also_long_enough_0000")
        with pytest.raises(PermissionDeniedError):
            verifier.verify(token)

    def test_expired(self, verifier, make_token):
        with pytest.raises(PermissionDeniedError):
            verifier.verify(make_token("alice", exp=int(time.time()) - 60))

    def test_garbage(self, verifier):
        with pytest.raises(PermissionDeniedError):
            verifier.verify("not.a.token")

    def test_non_string_user_becomes_empty(self, verifier, make_token):
        auth = verifier.verify(make_token(user=42))
        assert auth.user == ""

    def test_requires_algorithm(self):
        with pytest.raises(ValueError):
            TokenVerifier("x" * 40, [])

    def test_claims_hidden_from_repr(self):
        request = _request({"Wallet": "main"})
        assert "payload" not in repr(request)
