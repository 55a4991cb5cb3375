"""Test byte-cipher primitives"""

import zlib

import pytest

from music_search.core.exceptions import DecompressionError, DecryptionError, EncryptionError
from music_search.crypto.ciphers import (
    aes_cbc_decrypt,
    aes_cbc_encrypt,
    rsa_encrypt_secret,
    trim_trailing_padding,
    triple_des_decrypt,
    triple_des_encrypt,
    zlib_inflate,
)
from music_search.qqmusic.decoder import QQ_KEY


AES_KEY = b"0CoJUm6Qyw8W8jud"
AES_IV = b"0102030405060708"


class TestTripleDes:
    """Test the vendor Triple-DES"""

    def test_known_block(self):
        """First block of a captured lyric payload decrypts to a zlib header"""
        block = bytes.fromhex("00367FE8E50542AB")
        assert triple_des_decrypt(block, QQ_KEY) == bytes.fromhex("789C4558DB6E55D7")

    def test_known_block_encrypts_back(self):
        """Encryption is the inverse of decryption on a full block"""
        plain = bytes.fromhex("789C4558DB6E55D7")
        assert triple_des_encrypt(plain, QQ_KEY) == bytes.fromhex("00367FE8E50542AB")

    def test_captured_payload_inflates(self, qq_lyric_hex):
        """The captured payload decrypts to a complete zlib stream"""
        decrypted = triple_des_decrypt(bytes.fromhex(qq_lyric_hex), QQ_KEY)
        text = zlib_inflate(decrypted).decode("utf-8")
        assert decrypted[:8] == bytes.fromhex("789C4558DB6E55D7")
        assert text.startswith('<?xml version="1.0" encoding="utf-8"?>\n<QrcInfos>\n<QrcHeadInfo SaveTime="253"')
        assert len(text.encode("utf-8")) == 5430

    def test_round_trip_ecb_and_cbc(self):
        """Multi-block data survives encryption and decryption in both modes"""
        data = b"[0,1000]word(0,500)lyric(500,500)\n" * 3
        data = data.ljust(-(-len(data) // 8) * 8, b"\x00")
        for mode in ("ecb", "cbc"):
            encrypted = triple_des_encrypt(data, QQ_KEY, mode=mode)
            assert encrypted != data
            assert triple_des_decrypt(encrypted, QQ_KEY, mode=mode) == data

    def test_cbc_differs_from_ecb(self):
        """Identical blocks encrypt differently once chained"""
        data = b"ABCDEFGH" * 2
        ecb = triple_des_encrypt(data, QQ_KEY, mode="ecb")
        cbc = triple_des_encrypt(data, QQ_KEY, mode="cbc")
        assert ecb[:8] == ecb[8:]
        assert cbc[:8] != cbc[8:]

    def test_partial_block_is_truncated(self):
        """Output length always equals input length"""
        assert len(triple_des_decrypt(b"\x01\x02\x03", QQ_KEY)) == 3

    def test_wrong_key_length(self):
        """A key that is not 24 bytes is rejected"""
        with pytest.raises(DecryptionError):
            triple_des_decrypt(b"\x00" * 8, b"short")
        with pytest.raises(EncryptionError):
            triple_des_encrypt(b"\x00" * 8, b"short")

    def test_unknown_mode(self):
        """Only ECB and CBC are supported"""
        with pytest.raises(ValueError):
            triple_des_decrypt(b"\x00" * 8, QQ_KEY, mode="ofb")


class TestAes:
    """Test AES-CBC helpers"""

    def test_round_trip(self):
        """Decryption restores the plaintext"""
        plaintext = '{"s":"晴天","type":"1"}'.encode("utf-8")
        encrypted = aes_cbc_encrypt(plaintext, AES_KEY, AES_IV)
        assert aes_cbc_decrypt(encrypted, AES_KEY, AES_IV) == plaintext

    def test_deterministic_and_padded(self):
        """Same inputs give the same output, always a whole number of blocks"""
        first = aes_cbc_encrypt(b"0123456789abcdef", AES_KEY, AES_IV)
        second = aes_cbc_encrypt(b"0123456789abcdef", AES_KEY, AES_IV)
        assert first == second
        # A full block of plaintext gains a full block of padding
        assert len(first) == 32
        assert len(aes_cbc_encrypt(b"", AES_KEY, AES_IV)) == 16

    def test_invalid_key(self):
        """A key of an invalid size raises EncryptionError"""
        with pytest.raises(EncryptionError) as exc_info:
            aes_cbc_encrypt(b"data", b"short", AES_IV)
        assert exc_info.value.stage == "aes"

    def test_corrupt_ciphertext(self):
        """Ciphertext that is not a whole number of blocks raises DecryptionError"""
        with pytest.raises(DecryptionError):
            aes_cbc_decrypt(b"\x00" * 15, AES_KEY, AES_IV)


class TestRsa:
    """Test textbook RSA of the secret key"""

    def test_matches_modular_exponentiation(self):
        """Output is pow() over the reversed key, zero-padded to 256 hex chars"""
        result = rsa_encrypt_secret("abc", "fffffffb", "03")
        expected = format(pow(int.from_bytes(b"cba", "big"), 3, 0xFFFFFFFB), "x")
        assert len(result) == 256
        assert result.lstrip("0") == expected.lstrip("0")

    def test_invalid_hex(self):
        """A modulus that is not hex raises EncryptionError"""
        with pytest.raises(EncryptionError):
            rsa_encrypt_secret("abc", "not-hex", "03")


class TestZlib:
    """Test zlib inflation"""

    def test_trailing_filler_is_ignored(self):
        """Block filler after the stream does not matter"""
        compressed = zlib.compress("歌词".encode("utf-8")) + b"\x00" * 5
        assert zlib_inflate(compressed).decode("utf-8") == "歌词"

    def test_malformed_stream(self):
        """Bytes that are not zlib raise DecompressionError"""
        with pytest.raises(DecompressionError) as exc_info:
            zlib_inflate(b"<?xml version")
        assert exc_info.value.stage == "inflate"

    def test_truncated_stream(self):
        """A stream cut short raises DecompressionError"""
        compressed = zlib.compress(b"some lyric text " * 20)
        with pytest.raises(DecompressionError):
            zlib_inflate(compressed[:len(compressed) // 2])

    def test_trim_trailing_padding(self):
        """Only trailing NULs are removed"""
        assert trim_trailing_padding(b"a\x00b\x00\x00") == b"a\x00b"
