"""Deterministic serialization of fetched source trees.

A git checkout is verified against its recorded checksum by hashing the
tree in NAR (Nix Archive) form. Unlike tar:
- No timestamps, uid/gid, or permission modes (only executable bit)
- Directory entries are sorted, so the same tree always serializes identically
- Symlinks are stored as-is (not resolved)

Wire format: every value (keywords, names, file contents) is encoded as:
    uint64_le(length) + raw bytes + zero-padding to 8-byte boundary

Grammar (where str(x) is the wire encoding above):
    str("nix-archive-1")
    str("(") str("type")
      str("regular") [str("executable") str("")] str("contents") str(<data>)
    | str("symlink") str("target") str(<target>)
    | str("directory") { str("entry") str("(") str("name") str(<n>) str("node") <recurse> str(")") }
    str(")")

Version-control metadata (``.git`` and friends) is not part of a
checkout's identity, so callers can pass names to leave out.
"""

import hashlib
import os
import struct
from collections.abc import Collection
from pathlib import Path

VCS_DIRS = frozenset({".git", ".hg", ".svn"})


def _pad8(n: int) -> int:
    return (8 - n % 8) % 8


def _str(s: str | bytes) -> bytes:
    """Encode a value in NAR wire format: uint64_le length + data + pad."""
    if isinstance(s, str):
        s = s.encode()
    return struct.pack("<Q", len(s)) + s + b"\0" * _pad8(len(s))


def nar_serialize(path: str | Path, exclude: Collection[str] = ()) -> bytes:
    """Serialize a filesystem path to NAR bytes.

    Directory entries whose name is in `exclude` are skipped at every
    level of the tree. The root itself is never excluded.
    """
    parts: list[bytes] = [_str("nix-archive-1")]
    _serialize_entry(Path(path), parts, frozenset(exclude))
    return b"".join(parts)


def _serialize_entry(path: Path, parts: list[bytes], exclude: frozenset[str]) -> None:
    parts.append(_str("("))
    parts.append(_str("type"))

    if path.is_symlink():
        parts.append(_str("symlink"))
        parts.append(_str("target"))
        parts.append(_str(os.readlink(path)))

    elif path.is_file():
        parts.append(_str("regular"))
        # Only the executable bit survives.
        if os.access(path, os.X_OK):
            parts.append(_str("executable"))
            parts.append(_str(""))
        parts.append(_str("contents"))
        parts.append(_str(path.read_bytes()))

    elif path.is_dir():
        parts.append(_str("directory"))
        for entry_name in sorted(os.listdir(path)):
            if entry_name in exclude:
                continue
            parts.append(_str("entry"))
            parts.append(_str("("))
            parts.append(_str("name"))
            parts.append(_str(entry_name))
            parts.append(_str("node"))
            _serialize_entry(path / entry_name, parts, exclude)
            parts.append(_str(")"))
    else:
        raise ValueError(f"unsupported file type: {path}")

    parts.append(_str(")"))


def nar_hash(path: str | Path, exclude: Collection[str] = ()) -> bytes:
    """SHA-256 of the NAR serialization (a recursive checksum)."""
    return hashlib.sha256(nar_serialize(path, exclude)).digest()


def file_hash(path: str | Path) -> bytes:
    """SHA-256 of a file's raw bytes (a flat checksum)."""
    return hashlib.sha256(Path(path).read_bytes()).digest()
