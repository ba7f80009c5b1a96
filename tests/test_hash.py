"""Tests for digest helpers."""

from strata.base32 import CHARS
from strata.hash import compress_hash, sha256, short_digest


def test_compress_hash_folds_tail():
    data = bytes(range(32))
    folded = compress_hash(data, 20)
    assert len(folded) == 20
    assert folded[0] == data[0] ^ data[20]
    assert folded[11] == data[11] ^ data[31]
    assert folded[12] == data[12]


def test_compress_hash_no_fold_needed():
    assert compress_hash(b"\x01\x02", 4) == b"\x01\x02\x00\x00"


def test_short_digest():
    d = short_digest('Recipe("hello")')
    assert len(d) == 32
    assert set(d) <= set(CHARS)
    assert d == short_digest('Recipe("hello")')
    assert d != short_digest('Recipe("hello2")')


def test_sha256_is_raw_digest():
    assert len(sha256(b"")) == 32
