"""
Byte-cipher primitives shared by the vendor pipelines.

Every function here is pure: bytes in, bytes (or hex text) out, no state
kept between calls. The schemes are vendor-imposed (textbook RSA, fixed
IVs, a non-standard DES) and are replicated exactly.

Functions:
    aes_cbc_encrypt / aes_cbc_decrypt: AES-128-CBC with PKCS#7 padding
    rsa_encrypt_secret: Textbook RSA over a reversed secret key, hex output
    triple_des_encrypt / triple_des_decrypt: Vendor Triple-DES, ECB or CBC
    zlib_inflate: Inflate a zlib stream, raising DecompressionError
    trim_trailing_padding: Drop trailing NUL bytes left by block padding
"""

import zlib

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from music_search.core.exceptions import DecompressionError, DecryptionError, EncryptionError
from music_search.crypto.tripledes import (
    BLOCK_SIZE,
    DECRYPT,
    ENCRYPT,
    triple_des_crypt,
    triple_des_key_setup,
)


AES_BLOCK_BITS = 128
RSA_HEX_LENGTH = 256
TRIPLE_DES_MODES = ("ecb", "cbc")


def aes_cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Encrypt with AES-CBC after PKCS#7 padding to the 16-byte block size.

    Deterministic for fixed inputs: the vendor validates reproducible
    output for a given key and IV.

    Raises:
        EncryptionError: If the key or IV has an invalid length.
    """
    try:
        padder = padding.PKCS7(AES_BLOCK_BITS).padder()
        padded_data = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return encryptor.update(padded_data) + encryptor.finalize()
    except ValueError as e:
        raise EncryptionError(
            f"AES-CBC encryption failed: {e}",
            details={"stage": "aes", "key_length": len(key), "iv_length": len(iv)}
        ) from e


def aes_cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Inverse of aes_cbc_encrypt, used to verify signed request bodies.

    Raises:
        DecryptionError: If sizes are invalid or the PKCS#7 padding is corrupt.
    """
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded_data = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
        return unpadder.update(padded_data) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionError(
            f"AES-CBC decryption failed: {e}",
            details={"stage": "aes", "length": len(ciphertext)}
        ) from e


def rsa_encrypt_secret(secret_key_text: str, modulus_hex: str, exponent_hex: str) -> str:
    """
    Textbook RSA over the reversed secret key.

    The secret text is reversed, its bytes are read as one big-endian
    integer and raised to the public exponent modulo the vendor modulus.
    No OAEP or PKCS#1 padding is applied.

    Args:
        secret_key_text: The 16-character per-request secret key.
        modulus_hex: Public modulus as hex text.
        exponent_hex: Public exponent as hex text (e.g. "010001").

    Returns:
        Lowercase hex, left-padded with zeros to 256 characters (the
        last 256 characters are kept if the number is somehow longer).

    Raises:
        EncryptionError: If the modulus or exponent is not valid hex.
    """
    try:
        modulus = int(modulus_hex, 16)
        exponent = int(exponent_hex, 16)
    except ValueError as e:
        raise EncryptionError(
            "RSA modulus and exponent must be hex strings",
            details={"stage": "rsa", "original_error": str(e)}
        ) from e

    reversed_text = secret_key_text[::-1]
    message = int.from_bytes(reversed_text.encode("utf-8"), "big")
    encrypted = format(pow(message, exponent, modulus), "x")

    if len(encrypted) > RSA_HEX_LENGTH:
        return encrypted[-RSA_HEX_LENGTH:]
    return encrypted.zfill(RSA_HEX_LENGTH)


def _triple_des(data: bytes, key: bytes, mode: str, direction: int) -> bytes:
    if mode not in TRIPLE_DES_MODES:
        raise ValueError(f"Unsupported Triple-DES mode: {mode}")

    try:
        schedules = triple_des_key_setup(key, direction)
    except ValueError as e:
        error_cls = DecryptionError if direction == DECRYPT else EncryptionError
        raise error_cls(str(e), details={"stage": "3des", "key_length": len(key)}) from e

    output = bytearray()
    previous = bytes(BLOCK_SIZE)

    for offset in range(0, len(data), BLOCK_SIZE):
        chunk = data[offset:offset + BLOCK_SIZE]
        block = bytes(chunk).ljust(BLOCK_SIZE, b"\x00")

        if mode == "cbc" and direction == ENCRYPT:
            block = bytes(a ^ b for a, b in zip(block, previous))

        result = triple_des_crypt(block, schedules)

        if mode == "cbc":
            if direction == ENCRYPT:
                previous = result
            else:
                result = bytes(a ^ b for a, b in zip(result, previous))
                previous = block

        # Partial trailing block: keep only as many bytes as were supplied
        output += result[:len(chunk)]

    return bytes(output)


def triple_des_encrypt(plaintext: bytes, key: bytes, mode: str = "ecb") -> bytes:
    """
    Encrypt with the vendor Triple-DES (EDE, 24-byte key).

    No padding scheme is added; a partial trailing block is zero-filled
    before encryption and truncated afterwards, as the vendor does. CBC
    mode chains with an all-zero IV.
    """
    return _triple_des(plaintext, key, mode, ENCRYPT)


def triple_des_decrypt(ciphertext: bytes, key: bytes, mode: str = "ecb") -> bytes:
    """
    Decrypt with the vendor Triple-DES (EDE, 24-byte key).

    The vendor does not use PKCS#7: the plaintext is normally a zlib stream
    whose trailer makes trailing filler irrelevant. Callers that treat the
    result as text should pass it through trim_trailing_padding().

    Raises:
        DecryptionError: If the key has the wrong length.
    """
    return _triple_des(ciphertext, key, mode, DECRYPT)


def trim_trailing_padding(data: bytes) -> bytes:
    """Drop the NUL filler the vendor leaves after the last plaintext byte."""
    return data.rstrip(b"\x00")


def zlib_inflate(compressed_bytes: bytes) -> bytes:
    """
    Inflate a zlib stream.

    Bytes after the end of the stream (block filler) are ignored.

    Raises:
        DecompressionError: If the stream is malformed or truncated.
    """
    decompressor = zlib.decompressobj()
    try:
        data = decompressor.decompress(compressed_bytes)
        data += decompressor.flush()
    except zlib.error as e:
        raise DecompressionError(
            f"Malformed zlib stream: {e}",
            details={"stage": "inflate", "length": len(compressed_bytes)}
        ) from e

    if not decompressor.eof:
        raise DecompressionError(
            "Truncated zlib stream",
            details={"stage": "inflate", "length": len(compressed_bytes)}
        )

    return data
