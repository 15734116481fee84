"""
Opaque pagination tokens.

Serializes arbitrary state into an encrypted, authenticated, URL-safe string
(NaCl secretbox) so API consumers cannot read, forge, or depend on it.

Modules:
- codec: TokenCodec, encode/decode helpers and the token errors
- keys: SecretKey, the opaque 32-byte key
- serializer: Serializer protocol and the default JSON serializer
- models: PageCursor, a ready-made pagination state
"""

from .codec import (
    AuthenticationFailedError,
    DeserializationFailedError,
    InvalidTokenError,
    MalformedTokenError,
    TokenCodec,
    UnserializableValueError,
    decode,
    encode,
)
from .keys import KEY_SIZE, SecretKey
from .models import PageCursor
from .serializer import JsonSerializer, Serializer

__all__ = [
    "AuthenticationFailedError",
    "DeserializationFailedError",
    "InvalidTokenError",
    "JsonSerializer",
    "KEY_SIZE",
    "MalformedTokenError",
    "PageCursor",
    "SecretKey",
    "Serializer",
    "TokenCodec",
    "UnserializableValueError",
    "decode",
    "encode",
]
