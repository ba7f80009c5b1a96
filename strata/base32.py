"""Nix base32, the encoding recipes use for source checksums.

Recipes record a source's SHA-256 as a 52-character string such as::

    0b6k1wq4rpylygnmrxwhdvkbsvh8s4f1i5mnmhsp4c6hr0zlsqxa

The alphabet is "0123456789abcdfghijklmnpqrsvwxyz" (no e, o, t, u), and
5-bit groups are taken from the *last* position down to the first, so the
output is not RFC 4648 base32 even after swapping alphabets.

Output length is ceil(n*8/5) characters for n input bytes:
  20 bytes (recipe digest) → 32 chars
  32 bytes (SHA-256)       → 52 chars
"""

CHARS = "0123456789abcdfghijklmnpqrsvwxyz"
_DECODE_MAP = {c: i for i, c in enumerate(CHARS)}

SHA256_BYTES = 32
SHA256_CHARS = 52


def encode(data: bytes) -> str:
    """Encode bytes to nix base32, highest 5-bit group first."""
    n = len(data)
    out_len = (n * 8 + 4) // 5
    result = []
    for i in range(out_len - 1, -1, -1):
        b = i * 5
        j, k = divmod(b, 8)
        c = data[j] >> k
        if j + 1 < n:
            c |= data[j + 1] << (8 - k)
        result.append(CHARS[c & 0x1F])
    return "".join(result)


def decode(s: str) -> bytes:
    """Decode a nix base32 string. Raises ValueError on a foreign character."""
    out_len = len(s) * 5 // 8
    result = bytearray(out_len)
    for i, ch in enumerate(reversed(s)):
        digit = _DECODE_MAP.get(ch)
        if digit is None:
            raise ValueError(f"invalid nix base32 character: {ch!r}")
        j, k = divmod(i * 5, 8)
        result[j] |= (digit << k) & 0xFF
        carry = digit >> (8 - k)
        if carry:
            if j + 1 >= out_len:
                raise ValueError(f"nix base32 string has excess bits: {s!r}")
            result[j + 1] |= carry
    return bytes(result)


def parse_sha256(s: str) -> bytes:
    """Validate a recorded SHA-256 checksum and return its 32 raw bytes.

    A checksum must be exactly 52 characters. 52 * 5 = 260 bits, so the
    leading character may only carry the low bit; anything other than
    '0' or '1' there would encode more than 256 bits.
    """
    if len(s) != SHA256_CHARS:
        raise ValueError(
            f"sha256 checksum must be {SHA256_CHARS} base32 characters, "
            f"got {len(s)}: {s!r}"
        )
    return decode(s)
