from __future__ import annotations

import base64
import binascii
import hmac
import string
from typing import Union

from nacl.secret import SecretBox


KEY_SIZE = SecretBox.KEY_SIZE  # 32

_HEX_DIGITS = frozenset(string.hexdigits)


class SecretKey:
    """
    Opaque 32-byte symmetric key for token encryption.

    The raw bytes are only reachable through `bytes(key)`; `repr()` and `str()`
    never include them, so a key that ends up in a log line or a traceback
    stays secret.

    Keys are supplied by the caller. This library does not generate, store or
    rotate them.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        if not isinstance(key, (bytes, bytearray, memoryview)):
            raise TypeError(f"key must be bytes, not {type(key).__name__}")
        raw = bytes(key)
        if len(raw) != KEY_SIZE:
            raise ValueError(f"key must be exactly {KEY_SIZE} bytes, got {len(raw)}")
        self._key = raw

    @classmethod
    def from_text(cls, text: str | bytes) -> "SecretKey":
        """Parse a key from hex, base64url or standard base64 text.

        Padding is optional for the base64 forms. Surrounding whitespace is ignored.
        """
        if isinstance(text, bytes):
            try:
                text = text.decode("ascii")
            except UnicodeDecodeError as ex:
                raise ValueError("key text must be ASCII") from ex
        s = text.strip()
        if len(s) == KEY_SIZE * 2 and all(c in _HEX_DIGITS for c in s):
            return cls(bytes.fromhex(s))
        s = s.rstrip("=")
        s += "=" * (-len(s) % 4)
        try:
            raw = base64.b64decode(s.replace("-", "+").replace("_", "/"), validate=True)
        except (binascii.Error, ValueError) as ex:
            raise ValueError("key text is neither hex nor base64") from ex
        return cls(raw)

    def to_text(self) -> str:
        """Padded base64url form, accepted back by `from_text`."""
        return base64.urlsafe_b64encode(self._key).decode("ascii")

    def __bytes__(self) -> bytes:
        return self._key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretKey):
            return NotImplemented
        return hmac.compare_digest(self._key, other._key)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "SecretKey(<redacted>)"

    __str__ = __repr__


KeyLike = Union[SecretKey, bytes, bytearray]


def as_secret_key(key: KeyLike) -> SecretKey:
    if isinstance(key, SecretKey):
        return key
    return SecretKey(key)
