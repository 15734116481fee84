"""
Opaque, authenticated pagination tokens.

A token is `base64url(nonce || secretbox(payload))`, padding kept, where
`secretbox` is NaCl's XSalsa20-Poly1305 and the 24-byte nonce is drawn fresh
from the OS CSPRNG for every call. Tokens can only be read or produced by
holders of the 32-byte key; never hand that key to API consumers.

The empty string is reserved to mean "no state" (first page): it is never
produced by `encode`, and `decode("")` returns the caller's default untouched.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
from typing import Any, Callable, Optional

import nacl.utils
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

from .keys import KeyLike, SecretKey, as_secret_key
from .serializer import DEFAULT_SERIALIZER, Serializer


logger = logging.getLogger(__name__)

ENV_KEY = "HYRUMTOKEN_KEY"

NONCE_SIZE = SecretBox.NONCE_SIZE  # 24

# URL-safe alphabet only, padding mandatory (length checked separately)
_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")

RandomSource = Callable[[int], bytes]


class UnserializableValueError(TypeError):
    """Raised by `encode` when the value cannot be serialized.

    This is a programmer error: the caller's state type left the serializable
    subset. It is deliberately unrelated to `InvalidTokenError`.
    """


class InvalidTokenError(ValueError):
    """Base class for every rejection of an untrusted token."""


class MalformedTokenError(InvalidTokenError):
    """Token is not padded base64url, or too short to hold a nonce."""


class AuthenticationFailedError(InvalidTokenError):
    """Ciphertext did not verify under the key (tampered, foreign or wrong key)."""


class DeserializationFailedError(InvalidTokenError):
    """Decrypted payload does not match the requested shape."""


def _b64decode_strict(token: str) -> bytes:
    if len(token) % 4 != 0 or _TOKEN_RE.fullmatch(token) is None:
        raise MalformedTokenError("token is not valid base64url")
    try:
        return base64.urlsafe_b64decode(token)
    except (binascii.Error, ValueError) as ex:
        raise MalformedTokenError("token is not valid base64url") from ex


def _reject(kind: str, token: str) -> None:
    logger.debug("Rejected token (%s), length=%d", kind, len(token))


class TokenCodec:
    """
    Encodes values into opaque tokens and back, under a single key.

    Usage
    - `TokenCodec(key)` with a `SecretKey` or 32 raw bytes, or
      `TokenCodec.from_env()` to read `HYRUMTOKEN_KEY`.
    - `encode(value)` returns a fresh token string (different on every call).
    - `decode(token, into=None, default=None)` returns the decoded value, or
      `default` when `token` is empty. Raises an `InvalidTokenError` subclass
      for anything else that does not verify.

    Instances hold no mutable state and can be shared between threads.
    """

    def __init__(
        self,
        key: KeyLike,
        *,
        serializer: Optional[Serializer] = None,
        random_bytes: RandomSource = nacl.utils.random,
    ) -> None:
        self._box = SecretBox(bytes(as_secret_key(key)))
        self._serializer = serializer or DEFAULT_SERIALIZER
        self._random_bytes = random_bytes

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls, *, serializer: Optional[Serializer] = None) -> "TokenCodec":
        text = os.environ.get(ENV_KEY)
        if not text:
            raise RuntimeError(f"Missing required environment variable for token codec: {ENV_KEY}")
        return cls(SecretKey.from_text(text), serializer=serializer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key=<redacted>, serializer={type(self._serializer).__name__})"

    # -------- Core operations --------
    def encode(self, value: Any) -> str:
        """Serialize, encrypt and base64url-encode `value`.

        Raises:
        - UnserializableValueError if the serializer cannot represent `value`.
        - Whatever the random source raises; there is no fallback source.
        """
        try:
            plaintext = self._serializer.dumps(value)
        except (TypeError, ValueError) as ex:
            raise UnserializableValueError(
                f"cannot serialize {type(value).__name__} into a token: {ex}"
            ) from ex

        nonce = self._random_bytes(NONCE_SIZE)
        if len(nonce) != NONCE_SIZE:
            raise RuntimeError(f"random source returned {len(nonce)} bytes, expected {NONCE_SIZE}")

        # EncryptedMessage is nonce || ciphertext-with-tag
        sealed = self._box.encrypt(plaintext, nonce)
        return base64.urlsafe_b64encode(bytes(sealed)).decode("ascii")

    def decode(self, token: Optional[str], into: Optional[Any] = None, default: Any = None) -> Any:
        """Verify and decode `token`.

        Args:
        - token: a string produced by `encode`, or "" / None for "no state".
        - into: target type for the payload (pydantic model, dataclass, int, ...).
          None returns plain JSON values.
        - default: returned unchanged when `token` is empty or None.

        Raises (all `InvalidTokenError`):
        - MalformedTokenError: not padded base64url, or shorter than a nonce.
        - AuthenticationFailedError: does not verify under this key.
        - DeserializationFailedError: payload does not fit `into`.

        TypeError (not a token error) if `token` is neither str nor None, e.g. raw
        bytes from a request; decode those to str first.
        """
        if token is None or token == "":
            return default
        if not isinstance(token, str):
            raise TypeError(f"token must be str, not {type(token).__name__}")

        try:
            data = _b64decode_strict(token)
        except MalformedTokenError:
            _reject("malformed", token)
            raise
        if len(data) < NONCE_SIZE:
            _reject("malformed", token)
            raise MalformedTokenError("token is too short")

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = self._box.decrypt(ciphertext, nonce)
        except CryptoError:
            _reject("authentication", token)
            raise AuthenticationFailedError("token failed authentication") from None

        try:
            return self._serializer.loads(plaintext, into)
        except ValueError as ex:
            _reject("deserialization", token)
            raise DeserializationFailedError("token payload does not match expected shape") from ex


# -------- Convenience top-level helpers --------
def encode(
    key: KeyLike,
    value: Any,
    *,
    serializer: Optional[Serializer] = None,
    random_bytes: RandomSource = nacl.utils.random,
) -> str:
    return TokenCodec(key, serializer=serializer, random_bytes=random_bytes).encode(value)


def decode(
    key: KeyLike,
    token: Optional[str],
    into: Optional[Any] = None,
    *,
    default: Any = None,
    serializer: Optional[Serializer] = None,
) -> Any:
    if token is None or token == "":
        return default
    return TokenCodec(key, serializer=serializer).decode(token, into, default)
