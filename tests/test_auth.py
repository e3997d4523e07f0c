"""
Tests for bearer tokens and the signed-payload helper.
"""

import pytest
from fastapi import HTTPException

from auth.jwt import create_token, verify_token
from auth.signing import read_payload, sign_payload, unsign_payload


class TestSigning:
    def test_unsign_returns_payload(self):
        token = sign_payload({"a": 1}, "k")
        assert unsign_payload(token, "k") == {"a": 1}

    def test_read_payload_skips_signature(self):
        token = sign_payload({"a": 1}, "k")
        assert read_payload(token) == {"a": 1}

    def test_bad_signature(self):
        token = sign_payload({"a": 1}, "k")
        with pytest.raises(ValueError, match="signature"):
            unsign_payload(token, "other")

    def test_non_object_payload(self):
        with pytest.raises(ValueError):
            read_payload(sign_payload([1, 2], "k"))


class TestBearerTokens:
    def test_round_trip(self):
        assert verify_token(create_token("user-42")) == "user-42"

    def test_expired(self):
        token = create_token("user-42", expires_in=-10)
        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)
        assert exc_info.value.status_code == 401

    def test_non_ascii_signature(self):
        payload_part = create_token("user-42").split(".", 1)[0]
        with pytest.raises(HTTPException) as exc_info:
            verify_token(payload_part + ".é")
        assert exc_info.value.status_code == 401

    def test_tampered(self):
        token = create_token("user-42")
        with pytest.raises(HTTPException) as exc_info:
            verify_token(token + "x")
        assert exc_info.value.status_code == 401
