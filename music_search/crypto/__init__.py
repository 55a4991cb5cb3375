"""
Byte-cipher primitives for the vendor request and payload pipelines.

Usage:
    from music_search.crypto import aes_cbc_encrypt, triple_des_decrypt, zlib_inflate
"""

from music_search.crypto.ciphers import (
    aes_cbc_decrypt,
    aes_cbc_encrypt,
    rsa_encrypt_secret,
    trim_trailing_padding,
    triple_des_decrypt,
    triple_des_encrypt,
    zlib_inflate,
)

__all__ = [
    "aes_cbc_encrypt",
    "aes_cbc_decrypt",
    "rsa_encrypt_secret",
    "triple_des_encrypt",
    "triple_des_decrypt",
    "trim_trailing_padding",
    "zlib_inflate",
]
