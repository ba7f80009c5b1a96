"""Source descriptors for recipes: git checkouts and URL downloads.

Checksums are recorded in nix-base32 (52 characters). Upstream projects
often publish SRI strings instead ("sha256-<base64>"); both are accepted
and stored as base32, so the same content always records the same way.
"""

import base64

from strata.base32 import SHA256_BYTES, encode as b32encode
from strata.recipe import Source

GNU_MIRROR = "mirror://gnu"
SAVANNAH_GIT = "https://git.savannah.gnu.org/git"


def _base32_checksum(checksum: str) -> str:
    if checksum.startswith("sha256-"):
        raw = base64.b64decode(checksum[len("sha256-"):], validate=True)
        if len(raw) != SHA256_BYTES:
            raise ValueError(f"SRI checksum has {len(raw)} bytes, expected {SHA256_BYTES}")
        return b32encode(raw)
    return checksum


def git_fetch(url: str, commit: str, sha256: str) -> Source:
    """Source fetched by git checkout; `sha256` is the recursive hash of the tree."""
    return Source("git", url, commit, _base32_checksum(sha256))


def url_fetch(url: str, sha256: str) -> Source:
    """Source fetched as a single file; `sha256` is its flat hash."""
    return Source("url", url, "", _base32_checksum(sha256))


def gnu_url(package: str, version: str, ext: str = "tar.xz") -> str:
    """mirror://gnu/emacs/emacs-27.1.tar.xz"""
    return f"{GNU_MIRROR}/{package}/{package}-{version}.{ext}"
