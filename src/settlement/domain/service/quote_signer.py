"""Domain service: Quote Signer.

Creates and verifies short-lived, tamper-evident quote tokens of the form
``base64url(body) + "." + base64url(hmac_sha256(secret, body))`` where
*body* is the RFC 8785 canonical JSON of a ``QuotePayload``.

Tokens are stateless: nothing is stored per quote, so a token cannot be
revoked before it goes stale (see ``QUOTE_FRESHNESS`` in the submission
validator).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import re

import jcs

from settlement.domain.exceptions import InvalidSignature, MalformedToken
from settlement.domain.model.quote import QuotePayload

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    if not _SEGMENT.match(segment):
        raise MalformedToken("Quote token contains invalid characters")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise MalformedToken("Quote token is not valid base64url") from exc


class QuoteSigner:

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Quote signing secret must not be empty")
        self._key = secret.encode("utf-8")

    def sign(self, payload: QuotePayload) -> str:
        body = jcs.canonicalize(payload.to_wire())
        return f"{b64url_encode(body)}.{b64url_encode(self._mac(body))}"

    def verify(self, token: str) -> QuotePayload:
        """Return the payload of an authentic token.

        Raises:
            MalformedToken: not two base64url segments, or body is not JSON.
            InvalidSignature: the signature does not match the body.
            SchemaViolation: the body is authentic but not a valid payload.
        """
        if not isinstance(token, str):
            raise MalformedToken("Quote token must be a string")
        parts = token.split(".")
        if len(parts) != 2 or not all(parts):
            raise MalformedToken("Quote token must have exactly two segments")

        body_segment, signature_segment = parts
        body = b64url_decode(body_segment)

        # Exactly one signature string verifies per body; any other
        # signature text, whatever its characters, is a mismatch.
        expected = b64url_encode(self._mac(body)).encode("ascii")
        if not hmac.compare_digest(expected, signature_segment.encode("utf-8")):
            raise InvalidSignature("Quote token signature is invalid, please re-quote")

        try:
            raw = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedToken("Quote token body is not JSON") from exc

        return QuotePayload.from_wire(raw)

    def _mac(self, body: bytes) -> bytes:
        return hmac.new(self._key, body, hashlib.sha256).digest()
