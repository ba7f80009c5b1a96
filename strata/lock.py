"""Reproducibility lock for a published recipe collection.

Name, version, revision and source checksum are the unit of
reproducibility: re-fetching the same name/version/revision must give
the same bytes. The lock records them (plus the recipe digest) so that a
recipe edited without a revision bump is caught:

    {
      "version": 1,
      "recipes": [
        {"name": "libgccjit", "version": "10.2.0", "revision": 0,
         "url": "mirror://gnu/gcc/...", "commit": "", "sha256": "...",
         "digest": "..."}
      ]
    }
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path

from strata.recipe import BuildRecipe
from strata.serialize import recipe_digest

LOCK_FORMAT_VERSION = 1


class LockDriftError(Exception):
    """A recipe changed but kept the name/version/revision of a lock entry."""


@dataclass(frozen=True)
class LockEntry:
    name: str
    version: str
    revision: int
    url: str
    commit: str
    sha256: str
    digest: str

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.name, self.version, self.revision)


def lock_entry(recipe: BuildRecipe) -> LockEntry:
    if recipe.source is None:
        raise ValueError(f"{recipe.name}: cannot lock a recipe without a source")
    return LockEntry(
        name=recipe.name,
        version=recipe.version,
        revision=recipe.revision,
        url=recipe.source.url,
        commit=recipe.source.commit,
        sha256=recipe.source.sha256,
        digest=recipe_digest(recipe),
    )


def dump_lock(recipes: Iterable[BuildRecipe]) -> str:
    entries = sorted((lock_entry(r) for r in recipes), key=lambda e: e.key)
    doc = {
        "version": LOCK_FORMAT_VERSION,
        "recipes": [asdict(e) for e in entries],
    }
    return json.dumps(doc, indent=2) + "\n"


def load_lock(text: str) -> list[LockEntry]:
    doc = json.loads(text)
    if doc.get("version") != LOCK_FORMAT_VERSION:
        raise ValueError(f"unsupported lock format version: {doc.get('version')!r}")
    return [LockEntry(**e) for e in doc["recipes"]]


def write_lock(path: str | Path, recipes: Iterable[BuildRecipe]) -> None:
    Path(path).write_text(dump_lock(recipes))


def read_lock(path: str | Path) -> list[LockEntry]:
    return load_lock(Path(path).read_text())


def check_lock(entries: Iterable[LockEntry], recipes: Iterable[BuildRecipe]) -> None:
    """Raise LockDriftError if a locked name/version/revision now means something else.

    Recipes with no matching entry (new versions, bumped revisions) pass.
    """
    locked = {e.key: e for e in entries}
    for recipe in recipes:
        current = lock_entry(recipe)
        entry = locked.get(current.key)
        if entry is None:
            continue
        if entry.sha256 != current.sha256:
            raise LockDriftError(
                f"{recipe.name}@{recipe.version} revision {recipe.revision}: "
                f"source checksum changed from {entry.sha256} to {current.sha256}"
            )
        if entry.digest != current.digest:
            raise LockDriftError(
                f"{recipe.name}@{recipe.version} revision {recipe.revision}: "
                f"recipe changed without a revision bump"
            )
