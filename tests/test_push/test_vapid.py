"""Tests for VAPID key import and ES256 assertions."""

from __future__ import annotations

import hashlib
import json

import pytest
from ecdsa import NIST256p, SigningKey
from ecdsa.util import sigdecode_string

from payment_relay.config.settings import VapidConfig
from payment_relay.errors.definitions import SigningError
from payment_relay.push.vapid import (
    VapidSigner,
    audience_for,
    b64url_decode,
    b64url_encode,
    import_private_key,
    import_public_key,
)

ENDPOINT = "https://fcm.googleapis.com/fcm/send/abc123:def"
NOW = 1_717_243_200


def _keypair() -> tuple[SigningKey, bytes, bytes]:
    sk = SigningKey.generate(curve=NIST256p)
    return sk, sk.to_string(), b"\x04" + sk.get_verifying_key().to_string()


def _segments(token: str) -> tuple[dict, dict, bytes, bytes]:
    header_b64, claims_b64, sig_b64 = token.split(".")
    return (
        json.loads(b64url_decode(header_b64)),
        json.loads(b64url_decode(claims_b64)),
        f"{header_b64}.{claims_b64}".encode("ascii"),
        b64url_decode(sig_b64),
    )


# ---------------------------------------------------------------------------
# base64url / key import
# ---------------------------------------------------------------------------


class TestBase64Url:
    def test_encode_has_no_padding(self) -> None:
        assert b64url_encode(b"\xff\xfe") == "__4"

    def test_decode_tolerates_missing_padding(self) -> None:
        assert b64url_decode("__4") == b"\xff\xfe"


class TestKeyImport:
    def test_private_key_round_trip(self) -> None:
        sk, raw_private, _ = _keypair()
        assert import_private_key(raw_private).to_string() == sk.to_string()

    def test_private_key_wrong_length(self) -> None:
        with pytest.raises(SigningError, match="32 bytes"):
            import_private_key(b"\x01" * 31)

    def test_public_key_uses_x_and_y(self) -> None:
        sk, _, raw_public = _keypair()
        vk = import_public_key(raw_public)
        assert vk.to_string() == sk.get_verifying_key().to_string()

    def test_public_key_needs_uncompressed_marker(self) -> None:
        _, _, raw_public = _keypair()
        with pytest.raises(SigningError, match="uncompressed"):
            import_public_key(b"\x02" + raw_public[1:])

    def test_public_key_wrong_length(self) -> None:
        with pytest.raises(SigningError):
            import_public_key(b"\x04" + b"\x00" * 10)

    def test_public_key_not_on_curve(self) -> None:
        with pytest.raises(SigningError, match="invalid public key"):
            import_public_key(b"\x04" + b"\x01" * 64)


class TestAudience:
    def test_origin_only(self) -> None:
        assert audience_for(ENDPOINT) == "https://fcm.googleapis.com"

    def test_keeps_port(self) -> None:
        assert audience_for("https://push.example:8443/x/y?z=1") == "https://push.example:8443"

    def test_relative_endpoint_rejected(self) -> None:
        with pytest.raises(SigningError, match="no origin"):
            audience_for("/send/abc")


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class TestVapidSigner:
    def test_token_shape_and_claims(self) -> None:
        _, raw_private, raw_public = _keypair()
        signer = VapidSigner(
            private_key=raw_private, public_key=raw_public, subject="mailto:ops@example.com"
        )
        assertion = signer.sign(ENDPOINT, now=NOW)

        assert assertion.token.count(".") == 2
        assert "=" not in assertion.token
        header, claims, _, _ = _segments(assertion.token)
        assert header == {"typ": "JWT", "alg": "ES256"}
        assert claims == {
            "aud": "https://fcm.googleapis.com",
            "exp": NOW + 12 * 3600,
            "sub": "mailto:ops@example.com",
        }
        assert assertion.expires_at == NOW + 12 * 3600
        assert assertion.audience == "https://fcm.googleapis.com"

    def test_expiry_is_within_a_day(self) -> None:
        _, raw_private, _ = _keypair()
        assertion = VapidSigner(private_key=raw_private).sign(ENDPOINT, now=NOW)
        assert NOW < assertion.expires_at <= NOW + 24 * 3600

    def test_signature_verifies_with_public_key(self) -> None:
        sk, raw_private, raw_public = _keypair()
        signer = VapidSigner(private_key=raw_private, public_key=raw_public)
        _, _, signing_input, signature = _segments(signer.sign(ENDPOINT).token)

        assert len(signature) == 64
        assert sk.get_verifying_key().verify(
            signature, signing_input, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )

    def test_public_key_b64_is_uncompressed_point(self) -> None:
        _, raw_private, raw_public = _keypair()
        signer = VapidSigner(private_key=raw_private)
        assert b64url_decode(signer.public_key_b64) == raw_public

    def test_authorization_header(self) -> None:
        _, raw_private, _ = _keypair()
        signer = VapidSigner(private_key=raw_private)
        assertion = signer.sign(ENDPOINT)
        header = assertion.authorization(signer.public_key_b64)
        assert header == f"vapid t={assertion.token}, k={signer.public_key_b64}"

    def test_mismatched_public_key(self) -> None:
        _, raw_private, _ = _keypair()
        _, _, other_public = _keypair()
        signer = VapidSigner(private_key=raw_private, public_key=other_public)
        with pytest.raises(SigningError, match="does not match"):
            signer.sign(ENDPOINT)

    def test_bad_private_key_fails_on_use(self) -> None:
        signer = VapidSigner(private_key=b"short")
        with pytest.raises(SigningError):
            signer.sign(ENDPOINT)

    def test_from_config(self, vapid_keys) -> None:
        signer = VapidSigner.from_config(
            VapidConfig(subject="mailto:a@b.c", expiration_hours=1, **vapid_keys)
        )
        assert signer.subject == "mailto:a@b.c"
        assert signer.public_key_b64 == vapid_keys["public_key"]
        assertion = signer.sign(ENDPOINT, now=NOW)
        assert assertion.expires_at == NOW + 3600

    def test_from_config_rejects_garbage(self) -> None:
        with pytest.raises(SigningError, match="base64url"):
            VapidSigner.from_config(VapidConfig(private_key="abcde", public_key=""))

    def test_from_config_rejects_short_private_key(self) -> None:
        with pytest.raises(SigningError, match="32 bytes"):
            VapidSigner.from_config(VapidConfig(private_key="AAAA", public_key=""))

    def test_from_config_rejects_mismatched_pair(self, vapid_keys) -> None:
        _, _, other_public = _keypair()
        with pytest.raises(SigningError, match="does not match"):
            VapidSigner.from_config(
                VapidConfig(
                    private_key=vapid_keys["private_key"],
                    public_key=b64url_encode(other_public),
                )
            )
