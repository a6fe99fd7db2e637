"""VAPID assertions for Web Push (RFC 8292).

Builds the compact ``header.payload.signature`` token that proves this
service's identity to a push service:

- ES256: ECDSA on NIST P-256 with SHA-256, signature as raw ``r || s``
- ``aud`` is the scheme and host of the push endpoint
- ``exp`` is issuance time plus the configured lifetime (12 hours)
- ``sub`` is the operator contact URI

Keys are configured as base64url raw bytes. The private key is the
32-byte scalar; the public key is the 65-byte uncompressed point
``0x04 || X || Y``.
"""

from __future__ import annotations

import base64
import hashlib
import json
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from ecdsa import NIST256p, SigningKey, VerifyingKey
from ecdsa.util import sigencode_string

from payment_relay.errors.definitions import SigningError

if TYPE_CHECKING:
    from payment_relay.config.settings import VapidConfig

_CURVE = NIST256p
_PRIVATE_KEY_LEN = 32
_UNCOMPRESSED_POINT_LEN = 65
_UNCOMPRESSED_MARKER = 0x04

_HEADER = {"typ": "JWT", "alg": "ES256"}


# ---------------------------------------------------------------------------
# base64url helpers
# ---------------------------------------------------------------------------


def b64url_encode(data: bytes) -> str:
    """Base64url without ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Decode base64url, tolerating missing padding."""
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _json_segment(obj: dict[str, Any]) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


# ---------------------------------------------------------------------------
# Key import
# ---------------------------------------------------------------------------


def import_private_key(raw: bytes) -> SigningKey:
    """Build a P-256 signing key from the raw 32-byte scalar."""
    if len(raw) != _PRIVATE_KEY_LEN:
        raise SigningError(f"private key must be {_PRIVATE_KEY_LEN} bytes, got {len(raw)}")
    try:
        return SigningKey.from_string(raw, curve=_CURVE, hashfunc=hashlib.sha256)
    except Exception as exc:
        raise SigningError(f"invalid private key: {exc}") from exc


def import_public_key(raw: bytes) -> VerifyingKey:
    """Build a P-256 verifying key from a raw uncompressed point.

    The leading ``0x04`` marker is dropped; ``X`` is ``raw[1:33]`` and
    ``Y`` is ``raw[33:65]``.
    """
    if len(raw) != _UNCOMPRESSED_POINT_LEN or raw[0] != _UNCOMPRESSED_MARKER:
        raise SigningError("public key must be a 65-byte uncompressed P-256 point")
    x, y = raw[1:33], raw[33:65]
    try:
        return VerifyingKey.from_string(x + y, curve=_CURVE, hashfunc=hashlib.sha256)
    except Exception as exc:
        raise SigningError(f"invalid public key: {exc}") from exc


def encode_public_key(key: VerifyingKey) -> bytes:
    """Serialize a verifying key as ``0x04 || X || Y``."""
    return key.to_string("uncompressed")


def audience_for(endpoint: str) -> str:
    """Return ``scheme://host[:port]`` for a push endpoint URL."""
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.netloc:
        raise SigningError(f"endpoint has no origin: {endpoint!r}")
    return f"{parts.scheme}://{parts.netloc}"


# ---------------------------------------------------------------------------
# Signer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignedAssertion:
    """One freshly signed VAPID token. Never persisted."""

    token: str
    audience: str
    subject: str
    expires_at: int

    def authorization(self, public_key: str) -> str:
        """Value for the ``Authorization`` header (``vapid`` scheme)."""
        return f"vapid t={self.token}, k={public_key}"


class VapidSigner:
    """Signs per-endpoint VAPID assertions with a long-lived key pair.

    Key material is imported once and cached. :meth:`from_config` imports
    it eagerly, so bad keys surface at startup as :class:`SigningError`.
    A signer built directly imports on first use, and a bad key then fails
    each :meth:`sign` call instead.

    Usage::

        signer = VapidSigner(private_key=raw32, public_key=raw65)
        assertion = signer.sign("https://fcm.googleapis.com/fcm/send/abc")
        headers["Authorization"] = assertion.authorization(signer.public_key_b64)
    """

    def __init__(
        self,
        *,
        private_key: bytes,
        public_key: bytes | None = None,
        subject: str = "mailto:admin@example.com",
        expiration_hours: int = 12,
    ) -> None:
        self._private_raw = private_key
        self._public_raw = public_key
        self._subject = subject
        self._lifetime = expiration_hours * 3600
        self._signing_key: SigningKey | None = None
        self._public_key_b64: str | None = None

    @classmethod
    def from_config(cls, config: VapidConfig) -> VapidSigner:
        """Build a signer from base64url-encoded configuration values.

        Raises:
            SigningError: If a key is not base64url, has the wrong length,
                is not on P-256, or the public key does not match the
                private key.
        """
        try:
            private_raw = b64url_decode(config.private_key)
            public_raw = b64url_decode(config.public_key) if config.public_key else None
        except ValueError as exc:
            raise SigningError(f"VAPID keys are not valid base64url: {exc}") from exc
        signer = cls(
            private_key=private_raw,
            public_key=public_raw,
            subject=config.subject,
            expiration_hours=config.expiration_hours,
        )
        signer.validate()
        return signer

    @property
    def subject(self) -> str:
        """Contact URI placed in ``sub``."""
        return self._subject

    @property
    def public_key_b64(self) -> str:
        """Application server key as browsers expect it (base64url, 65 bytes)."""
        self._load_keys()
        return self._public_key_b64 or ""

    def validate(self) -> None:
        """Import the key pair now instead of on the first :meth:`sign`."""
        self._load_keys()

    def _load_keys(self) -> SigningKey:
        if self._signing_key is not None:
            return self._signing_key
        signing_key = import_private_key(self._private_raw)
        derived = signing_key.get_verifying_key()
        if self._public_raw is not None:
            supplied = import_public_key(self._public_raw)
            if supplied.to_string() != derived.to_string():
                raise SigningError("VAPID public key does not match the private key")
        self._public_key_b64 = b64url_encode(encode_public_key(derived))
        self._signing_key = signing_key
        return signing_key

    def sign(self, endpoint: str, *, now: float | None = None) -> SignedAssertion:
        """Build a signed assertion whose audience is *endpoint*'s origin.

        Raises:
            SigningError: On key import failure, a malformed endpoint, or a
                signing failure.
        """
        signing_key = self._load_keys()
        audience = audience_for(endpoint)
        issued = int(time.time() if now is None else now)
        expires_at = issued + self._lifetime
        claims = {"aud": audience, "exp": expires_at, "sub": self._subject}

        signing_input = f"{_json_segment(_HEADER)}.{_json_segment(claims)}"
        try:
            signature = signing_key.sign_deterministic(
                signing_input.encode("ascii"),
                hashfunc=hashlib.sha256,
                sigencode=sigencode_string,
            )
        except Exception as exc:
            raise SigningError(f"ES256 signing failed: {exc}") from exc

        return SignedAssertion(
            token=f"{signing_input}.{b64url_encode(signature)}",
            audience=audience,
            subject=self._subject,
            expires_at=expires_at,
        )
