"""Hash utilities for recipe digests and source checksums."""

import hashlib

from strata.base32 import encode as b32encode

DIGEST_BYTES = 20  # 160 bits, XOR-folded (not truncated)


def compress_hash(hash_bytes: bytes, size: int) -> bytes:
    """XOR-fold a hash to the given size.

    Every input byte contributes: bytes beyond `size` are XOR'd back onto
    the earlier positions, so result[0] = hash[0] ^ hash[20] and so on.
    """
    result = bytearray(size)
    for i, b in enumerate(hash_bytes):
        result[i % size] ^= b
    return bytes(result)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def short_digest(text: str) -> str:
    """32-character base32 digest of a canonical text form.

    Used to identify recipes and overlays: SHA-256, folded to 160 bits,
    then base32-encoded.
    """
    return b32encode(compress_hash(sha256(text.encode()), DIGEST_BYTES))
