"""Test NetEase weapi request signing"""

import base64
import json

import pytest

from music_search.core.exceptions import EncryptionError
from music_search.crypto.ciphers import aes_cbc_decrypt
from music_search.netease.signer import (
    IV,
    MODULUS,
    NONCE,
    PUBLIC_EXPONENT,
    SECRET_KEY_CHARSET,
    CipherContext,
    create_secret_key,
    encrypt_request,
)


FIXED_KEY = "a8LWv2uAtXjzSfkQ"


def decrypt_params(params: str, secret_key: str) -> dict:
    """Undo both AES layers of a params field"""
    stage_one = aes_cbc_decrypt(base64.b64decode(params), secret_key.encode(), IV)
    text = aes_cbc_decrypt(base64.b64decode(stage_one), NONCE.encode(), IV)
    return json.loads(text.decode("utf-8"))


class TestSecretKey:
    """Test per-request secret keys"""

    def test_shape(self):
        """Sixteen characters from the alphanumeric charset"""
        key = create_secret_key()
        assert len(key) == 16
        assert all(char in SECRET_KEY_CHARSET for char in key)

    def test_fresh_per_context(self):
        """Each context draws its own key"""
        keys = {CipherContext.generate().secret_key for _ in range(5)}
        assert len(keys) > 1


class TestEncryptRequest:
    """Test signed form bodies"""

    def test_params_decrypt_to_compact_json(self):
        """Both AES layers can be undone to recover the request"""
        data = {"s": "晴天", "type": "1", "limit": "20"}
        form = encrypt_request(data, CipherContext(secret_key=FIXED_KEY))

        assert set(form) == {"params", "encSecKey"}
        assert decrypt_params(form["params"], FIXED_KEY) == data

    def test_enc_sec_key(self):
        """encSecKey is RSA of the reversed key as 256 lowercase hex chars"""
        form = encrypt_request({"id": "1"}, CipherContext(secret_key=FIXED_KEY))
        enc_sec_key = form["encSecKey"]

        message = int.from_bytes(FIXED_KEY[::-1].encode(), "big")
        expected = format(pow(message, int(PUBLIC_EXPONENT, 16), int(MODULUS, 16)), "x").zfill(256)

        assert enc_sec_key == expected
        assert len(enc_sec_key) == 256
        assert enc_sec_key == enc_sec_key.lower()

    def test_published_enc_sec_key(self):
        """The widely published key pair for FFFFFFFFFFFFFFFF is reproduced"""
        assert CipherContext(secret_key="FFFFFFFFFFFFFFFF").enc_sec_key == (
            "257348aecb5e556c066de214e531faadd1c55d814f9be95fd06d6bff9f4c7a41f831f6394d5a3fd2e3881736d94a02ca"
            "919d952872e7d0a50ebfa1769a7a62d512f5f1ca21aec60bc3819a9c3ffca5eca9a0dba6d6f7249b06f5965ecfff3695"
            "b54e1c28f3f624750ed39e7de08fc8493242e26dbc4484a01c76f739e135637c"
        )

    def test_key_is_reversed_before_rsa(self):
        """encSecKey encrypts ponmlkjihgfedcba for the key abcdefghijklmnop"""
        assert CipherContext(secret_key="abcdefghijklmnop").enc_sec_key == (
            "d15a1683c992095d0c234c19966605c5c5964911268bbeda8cb8d08d834913e59d53b32358903a121b5fca784c1f5ae4"
            "4951fd02524df58ecc98e52cc7cf8689b42c2e93ddf05b0592512d87f5960467e2f086c018849d76014d323500e30f13"
            "ef4cafbb0cf5a66731a3f1776c75ca35d0062dac70a3e33245afabcf47938487"
        )

    @pytest.mark.parametrize("secret_key, data, params", [
        ("FFFFFFFFFFFFFFFF", {"id": "1"}, "os7k3XlS8DlXDhFdL73peHmY0EgAnKOvUYoLTS1J0Rg="),
        ("FFFFFFFFFFFFFFFF", {"s": "晴天", "type": "1"},
         "Aw8D7L2gRDtY35+AyKtjDRJ9hkdtQTy+OPYj0fwDKOQZ1BwFhJmxubhhIYIn0tWb"),
        ("abcdefghijklmnop", {"id": "1"}, "ERVMY+uBJ6qMpQmfSfp+0pMySG92n6RT0I6/sTVmVkM="),
        ("abcdefghijklmnop", {"s": "晴天", "type": "1"},
         "q2U/Kw844bAZSbX4fA3vMbcPl2nE5NKSmybpUpkh4TzZnFsNpJuVlq8qrU2KfW2l"),
    ])
    def test_known_params(self, secret_key, data, params):
        """params match values computed with an independent AES-128-CBC implementation"""
        assert encrypt_request(data, CipherContext(secret_key=secret_key))["params"] == params

    def test_reproducible_with_fixed_context(self):
        """A fixed key gives identical output"""
        context = CipherContext(secret_key=FIXED_KEY)
        assert encrypt_request({"id": "1"}, context) == encrypt_request({"id": "1"}, context)

    def test_unserializable(self):
        """Parameters that are not JSON raise EncryptionError"""
        with pytest.raises(EncryptionError) as exc_info:
            encrypt_request({"id": object()})
        assert exc_info.value.source == "netease"
