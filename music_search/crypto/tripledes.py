"""
Triple-DES block cipher as implemented by QQ Music's lyric service.

The vendor ships its own DES implementation whose S-boxes 2 and 4 differ
from FIPS 46-3 in a few entries. Ciphertext produced by the service can
therefore not be decrypted with a standard DES library; this module
reproduces the vendor routine bit for bit. All intermediate values are
32-bit words; Python integers are masked wherever the shifts could spill.

Only the block function and key schedule live here. Modes of operation
and padding are handled in music_search.crypto.ciphers.
"""

ENCRYPT = 1
DECRYPT = 0

BLOCK_SIZE = 8
KEY_SIZE = 24

SBOX1 = (
    14, 4, 13, 1, 2, 15, 11, 8, 3, 10, 6, 12, 5, 9, 0, 7,
    0, 15, 7, 4, 14, 2, 13, 1, 10, 6, 12, 11, 9, 5, 3, 8,
    4, 1, 14, 8, 13, 6, 2, 11, 15, 12, 9, 7, 3, 10, 5, 0,
    15, 12, 8, 2, 4, 9, 1, 7, 5, 11, 3, 14, 10, 0, 6, 13,
)

SBOX2 = (
    15, 1, 8, 14, 6, 11, 3, 4, 9, 7, 2, 13, 12, 0, 5, 10,
    3, 13, 4, 7, 15, 2, 8, 15, 12, 0, 1, 10, 6, 9, 11, 5,
    0, 14, 7, 11, 10, 4, 13, 1, 5, 8, 12, 6, 9, 3, 2, 15,
    13, 8, 10, 1, 3, 15, 4, 2, 11, 6, 7, 12, 0, 5, 14, 9,
)

SBOX3 = (
    10, 0, 9, 14, 6, 3, 15, 5, 1, 13, 12, 7, 11, 4, 2, 8,
    13, 7, 0, 9, 3, 4, 6, 10, 2, 8, 5, 14, 12, 11, 15, 1,
    13, 6, 4, 9, 8, 15, 3, 0, 11, 1, 2, 12, 5, 10, 14, 7,
    1, 10, 13, 0, 6, 9, 8, 7, 4, 15, 14, 3, 11, 5, 2, 12,
)

SBOX4 = (
    7, 13, 14, 3, 0, 6, 9, 10, 1, 2, 8, 5, 11, 12, 4, 15,
    13, 8, 11, 5, 6, 15, 0, 3, 4, 7, 2, 12, 1, 10, 14, 9,
    10, 6, 9, 0, 12, 11, 7, 13, 15, 1, 3, 14, 5, 2, 8, 4,
    3, 15, 0, 6, 10, 10, 13, 8, 9, 4, 5, 11, 12, 7, 2, 14,
)

SBOX5 = (
    2, 12, 4, 1, 7, 10, 11, 6, 8, 5, 3, 15, 13, 0, 14, 9,
    14, 11, 2, 12, 4, 7, 13, 1, 5, 0, 15, 10, 3, 9, 8, 6,
    4, 2, 1, 11, 10, 13, 7, 8, 15, 9, 12, 5, 6, 3, 0, 14,
    11, 8, 12, 7, 1, 14, 2, 13, 6, 15, 0, 9, 10, 4, 5, 3,
)

SBOX6 = (
    12, 1, 10, 15, 9, 2, 6, 8, 0, 13, 3, 4, 14, 7, 5, 11,
    10, 15, 4, 2, 7, 12, 9, 5, 6, 1, 13, 14, 0, 11, 3, 8,
    9, 14, 15, 5, 2, 8, 12, 3, 7, 0, 4, 10, 1, 13, 11, 6,
    4, 3, 2, 12, 9, 5, 15, 10, 11, 14, 1, 7, 6, 0, 8, 13,
)

SBOX7 = (
    4, 11, 2, 14, 15, 0, 8, 13, 3, 12, 9, 7, 5, 10, 6, 1,
    13, 0, 11, 7, 4, 9, 1, 10, 14, 3, 5, 12, 2, 15, 8, 6,
    1, 4, 11, 13, 12, 3, 7, 14, 10, 15, 6, 8, 0, 5, 9, 2,
    6, 11, 13, 8, 1, 4, 10, 7, 9, 5, 0, 15, 14, 2, 3, 12,
)

SBOX8 = (
    13, 2, 8, 4, 6, 15, 11, 1, 10, 9, 3, 14, 5, 0, 12, 7,
    1, 15, 13, 8, 10, 3, 7, 4, 12, 5, 6, 11, 0, 14, 9, 2,
    7, 11, 4, 1, 9, 12, 14, 2, 0, 6, 10, 13, 15, 3, 5, 8,
    2, 1, 14, 7, 4, 10, 8, 13, 15, 12, 9, 0, 3, 5, 6, 11,
)

KEY_RND_SHIFT = (1, 1, 2, 2, 2, 2, 2, 2, 1, 2, 2, 2, 2, 2, 2, 1)

KEY_PERM_C = (
    56, 48, 40, 32, 24, 16, 8, 0, 57, 49, 41, 33, 25, 17,
    9, 1, 58, 50, 42, 34, 26, 18, 10, 2, 59, 51, 43, 35,
)

KEY_PERM_D = (
    62, 54, 46, 38, 30, 22, 14, 6, 61, 53, 45, 37, 29, 21,
    13, 5, 60, 52, 44, 36, 28, 20, 12, 4, 27, 19, 11, 3,
)

KEY_COMPRESSION = (
    13, 16, 10, 23, 0, 4, 2, 27, 14, 5, 20, 9,
    22, 18, 11, 3, 25, 7, 15, 6, 26, 19, 12, 1,
    40, 51, 30, 36, 46, 54, 29, 39, 50, 44, 32, 47,
    43, 48, 38, 55, 33, 52, 45, 41, 49, 35, 28, 31,
)

# Source bit of each output bit (31 down to 0) of the initial permutation
IP_LEFT = (
    57, 49, 41, 33, 25, 17, 9, 1, 59, 51, 43, 35, 27, 19, 11, 3,
    61, 53, 45, 37, 29, 21, 13, 5, 63, 55, 47, 39, 31, 23, 15, 7,
)
IP_RIGHT = (
    56, 48, 40, 32, 24, 16, 8, 0, 58, 50, 42, 34, 26, 18, 10, 2,
    60, 52, 44, 36, 28, 20, 12, 4, 62, 54, 46, 38, 30, 22, 14, 6,
)

# Column of the state words feeding each output byte of the inverse permutation
INV_IP_OFFSETS = (4, 5, 6, 7, 0, 1, 2, 3)

# Source bit of each output bit (0 upwards) of the round function's P permutation
P_PERMUTATION = (
    15, 6, 19, 20, 28, 11, 27, 16, 0, 14, 22, 25, 4, 17, 30, 9,
    1, 7, 23, 13, 31, 26, 2, 8, 18, 12, 29, 5, 21, 10, 3, 24,
)


def bitnum(a: bytes, b: int, c: int) -> int:
    """Bit b of the byte buffer a (vendor bit order), moved to position c."""
    return ((a[b // 32 * 4 + 3 - b % 32 // 8] >> (7 - (b % 8))) & 0x01) << c


def bitnumintr(a: int, b: int, c: int) -> int:
    """Bit b (counted from the MSB) of the 32-bit word a, moved to position c."""
    return ((a >> (31 - b)) & 0x01) << c


def bitnumintl(a: int, b: int, c: int) -> int:
    """Bit b (counted from the MSB) of the 32-bit word a, moved to bit 31 - c."""
    return ((a << b) & 0x80000000) >> c


def sboxbit(a: int) -> int:
    return (a & 0x20) | ((a & 0x1F) >> 1) | ((a & 0x01) << 4)


def key_schedule(key: bytes, mode: int) -> list[list[int]]:
    """
    Expand an 8-byte DES key into 16 six-byte round keys.

    Args:
        key: 8 key bytes.
        mode: ENCRYPT or DECRYPT. DECRYPT stores the round keys in reverse
              order so the same Feistel routine runs the cipher backwards.

    Returns:
        16 round keys, each a list of 6 integers in 0..255.
    """
    schedule = [[0] * 6 for _ in range(16)]

    c = 0
    d = 0
    for i in range(28):
        c |= bitnum(key, KEY_PERM_C[i], 31 - i)
        d |= bitnum(key, KEY_PERM_D[i], 31 - i)

    for i in range(16):
        shift = KEY_RND_SHIFT[i]
        c = ((c << shift) | (c >> (28 - shift))) & 0xFFFFFFF0
        d = ((d << shift) | (d >> (28 - shift))) & 0xFFFFFFF0

        to_gen = 15 - i if mode == DECRYPT else i
        round_key = schedule[to_gen]

        for j in range(24):
            round_key[j // 8] |= bitnumintr(c, KEY_COMPRESSION[j], 7 - (j % 8))

        for j in range(24, 48):
            round_key[j // 8] |= bitnumintr(d, KEY_COMPRESSION[j] - 27, 7 - (j % 8))

    return schedule


def initial_permutation(block: bytes) -> list[int]:
    left = 0
    right = 0
    for position in range(32):
        left |= bitnum(block, IP_LEFT[position], 31 - position)
        right |= bitnum(block, IP_RIGHT[position], 31 - position)
    return [left, right]


def inverse_permutation(state: list[int]) -> bytes:
    output = bytearray(BLOCK_SIZE)
    for index, offset in enumerate(INV_IP_OFFSETS):
        output[index] = (
            bitnumintr(state[1], offset, 7)
            | bitnumintr(state[0], offset, 6)
            | bitnumintr(state[1], offset + 8, 5)
            | bitnumintr(state[0], offset + 8, 4)
            | bitnumintr(state[1], offset + 16, 3)
            | bitnumintr(state[0], offset + 16, 2)
            | bitnumintr(state[1], offset + 24, 1)
            | bitnumintr(state[0], offset + 24, 0)
        )
    return bytes(output)


def des_f(state: int, key: list[int]) -> int:
    """DES round function: expansion, key mixing, S-boxes, P permutation."""
    t1 = (
        bitnumintl(state, 31, 0)
        | ((state & 0xF0000000) >> 1)
        | bitnumintl(state, 4, 5)
        | bitnumintl(state, 3, 6)
        | ((state & 0x0F000000) >> 3)
        | bitnumintl(state, 8, 11)
        | bitnumintl(state, 7, 12)
        | ((state & 0x00F00000) >> 5)
        | bitnumintl(state, 12, 17)
        | bitnumintl(state, 11, 18)
        | ((state & 0x000F0000) >> 7)
        | bitnumintl(state, 16, 23)
    )

    t2 = (
        bitnumintl(state, 15, 0)
        | ((state & 0x0000F000) << 15)
        | bitnumintl(state, 20, 5)
        | bitnumintl(state, 19, 6)
        | ((state & 0x00000F00) << 13)
        | bitnumintl(state, 24, 11)
        | bitnumintl(state, 23, 12)
        | ((state & 0x000000F0) << 11)
        | bitnumintl(state, 28, 17)
        | bitnumintl(state, 27, 18)
        | ((state & 0x0000000F) << 9)
        | bitnumintl(state, 0, 23)
    )

    lrgstate = [
        ((t1 >> 24) & 0xFF) ^ key[0],
        ((t1 >> 16) & 0xFF) ^ key[1],
        ((t1 >> 8) & 0xFF) ^ key[2],
        ((t2 >> 24) & 0xFF) ^ key[3],
        ((t2 >> 16) & 0xFF) ^ key[4],
        ((t2 >> 8) & 0xFF) ^ key[5],
    ]

    state = (
        (SBOX1[sboxbit(lrgstate[0] >> 2)] << 28)
        | (SBOX2[sboxbit(((lrgstate[0] & 0x03) << 4) | (lrgstate[1] >> 4))] << 24)
        | (SBOX3[sboxbit(((lrgstate[1] & 0x0F) << 2) | (lrgstate[2] >> 6))] << 20)
        | (SBOX4[sboxbit(lrgstate[2] & 0x3F)] << 16)
        | (SBOX5[sboxbit(lrgstate[3] >> 2)] << 12)
        | (SBOX6[sboxbit(((lrgstate[3] & 0x03) << 4) | (lrgstate[4] >> 4))] << 8)
        | (SBOX7[sboxbit(((lrgstate[4] & 0x0F) << 2) | (lrgstate[5] >> 6))] << 4)
        | SBOX8[sboxbit(lrgstate[5] & 0x3F)]
    )

    result = 0
    for position, source in enumerate(P_PERMUTATION):
        result |= bitnumintl(state, source, position)
    return result


def des_crypt(block: bytes, schedule: list[list[int]]) -> bytes:
    """Run one 8-byte block through single DES with the given round keys."""
    state = initial_permutation(block)

    for idx in range(15):
        t = state[1]
        state[1] = des_f(state[1], schedule[idx]) ^ state[0]
        state[0] = t

    state[0] = des_f(state[1], schedule[15]) ^ state[0]

    return inverse_permutation(state)


def triple_des_key_setup(key: bytes, mode: int) -> list[list[list[int]]]:
    """
    Build the three single-DES schedules for EDE Triple-DES.

    Encryption runs E(k1), D(k2), E(k3); decryption runs the mirror image
    D(k3), E(k2), D(k1).
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Triple-DES key must be {KEY_SIZE} bytes, got {len(key)}")

    if mode == ENCRYPT:
        return [
            key_schedule(key[0:8], ENCRYPT),
            key_schedule(key[8:16], DECRYPT),
            key_schedule(key[16:24], ENCRYPT),
        ]
    return [
        key_schedule(key[16:24], DECRYPT),
        key_schedule(key[8:16], ENCRYPT),
        key_schedule(key[0:8], DECRYPT),
    ]


def triple_des_crypt(block: bytes, schedules: list[list[list[int]]]) -> bytes:
    """Run one 8-byte block through the three DES passes."""
    output = des_crypt(block, schedules[0])
    output = des_crypt(output, schedules[1])
    return des_crypt(output, schedules[2])
