"""
NetEase Cloud Music vendor.

    - signer: weapi request signing (AES-CBC twice plus RSA key wrap)
    - models: Response normalizers
    - api: NetEaseMusicApi client
"""

from music_search.netease.api import NetEaseMusicApi
from music_search.netease.signer import CipherContext, create_secret_key, encrypt_request

__all__ = [
    "NetEaseMusicApi",
    "CipherContext",
    "create_secret_key",
    "encrypt_request",
]
