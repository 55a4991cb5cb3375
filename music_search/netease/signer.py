"""
NetEase Cloud Music "weapi" request signing.

Every weapi endpoint expects an `application/x-www-form-urlencoded` body
with two fields:

    params     AES-CBC(AES-CBC(json, NONCE), secret_key), base64 both times
    encSecKey  textbook RSA of the reversed secret key, 256 hex chars

The secret key is 16 random alphanumeric characters generated for each
request and discarded afterwards. The nonce, IV, modulus and exponent are
the vendor's published constants.

Usage:
    form = encrypt_request({"s": "keyword", "type": "1"})
    # -> {"params": "...", "encSecKey": "..."}
"""

import base64
import json
import secrets
from dataclasses import dataclass, field
from typing import Any

from music_search.core.exceptions import EncryptionError
from music_search.crypto.ciphers import aes_cbc_encrypt, rsa_encrypt_secret


NONCE = "0CoJUm6Qyw8W8jud"
IV = b"0102030405060708"
PUBLIC_EXPONENT = "010001"
MODULUS = (
    "00e0b509f6259df8642dbc35662901477df22677ec152b5ff68ace615bb7b725152b3ab17a876aea8a5aa76d2e417629ec4ee341"
    "f56135fccf695280104e0312ecbda92557c93870114af6c9d05c4f7f0c3685b7a46bee255932575cce10b424d813cfe4875d3e82"
    "047b97ddef52741d546b8e289dc6935b3ece0462db0a22b8e7"
)
SECRET_KEY_CHARSET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
SECRET_KEY_LENGTH = 16


def create_secret_key(length: int = SECRET_KEY_LENGTH) -> str:
    """Random secret key drawn from the vendor alphanumeric charset."""
    return "".join(secrets.choice(SECRET_KEY_CHARSET) for _ in range(length))


@dataclass(frozen=True)
class CipherContext:
    """
    Call-scoped signing material.

    Only `secret_key` varies; the remaining fields are the vendor constants.
    A context is never persisted or shared between requests.
    """
    secret_key: str = field(default_factory=create_secret_key)
    nonce: str = NONCE
    iv: bytes = IV
    modulus: str = MODULUS
    exponent: str = PUBLIC_EXPONENT

    @classmethod
    def generate(cls) -> "CipherContext":
        return cls()

    @property
    def enc_sec_key(self) -> str:
        return rsa_encrypt_secret(self.secret_key, self.modulus, self.exponent)


def _aes_base64(text: str, key: str, iv: bytes) -> str:
    encrypted = aes_cbc_encrypt(text.encode("utf-8"), key.encode("utf-8"), iv)
    return base64.b64encode(encrypted).decode("ascii")


def serialize_params(data: dict[str, Any]) -> str:
    """Compact JSON as the web client produces it."""
    try:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise EncryptionError(
            f"Request parameters are not JSON serializable: {e}",
            details={"source": "netease", "stage": "serialize"}
        ) from e


def encrypt_request(data: dict[str, Any], context: CipherContext | None = None) -> dict[str, str]:
    """
    Build the signed form body for a weapi endpoint.

    Args:
        data: Logical request parameters.
        context: Signing material; a fresh one is generated when omitted.
                 Tests pass a fixed context to get reproducible output.

    Returns:
        {"params": ..., "encSecKey": ...}

    Raises:
        EncryptionError: If serialization or a cipher step fails.
    """
    context = context or CipherContext.generate()
    text = serialize_params(data)

    try:
        stage_one = _aes_base64(text, context.nonce, context.iv)
        params = _aes_base64(stage_one, context.secret_key, context.iv)
        enc_sec_key = context.enc_sec_key
    except EncryptionError as e:
        e.details.setdefault("source", "netease")
        raise

    return {"params": params, "encSecKey": enc_sec_key}
