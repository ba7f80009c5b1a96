"""Build recipes — the immutable description of how to build one package.

A recipe is plain data handed to the host package manager:

    BuildRecipe(
        name="emacs", version="27.1", revision=0,
        source=Source("url", "mirror://gnu/emacs/emacs-27.1.tar.xz", "", "0h9f2w..."),
        inputs=[Input("pkg-config", "pkg-config@0.29.2", InputClass.NATIVE), ...],
        flags=["--with-modules"],
        phases=[Phase("unpack", "gnu:unpack"), Phase("configure", "gnu:configure"), ...],
    )

Every sequence is stored as a tuple and the dataclasses are frozen, so a
recipe never changes once built. Variants are derived with
``strata.overlay.apply_overlay``, which always returns a new value.

Phase payloads and input sources are opaque strings: this layer only
cares about names and ordering. The host executes the payloads.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum

from strata.base32 import parse_sha256

SOURCE_METHODS = ("git", "url")


class InputClass(Enum):
    """Which environment an input lands in."""

    NATIVE = "native"          # build-time only (native-inputs)
    RUNTIME = "runtime"        # linked / referenced at run time (inputs)
    PROPAGATED = "propagated"  # also exposed to dependents


@dataclass(frozen=True)
class Phase:
    name: str
    payload: str


@dataclass(frozen=True)
class Input:
    name: str
    source: str  # package reference, usually "name@version"
    kind: InputClass = InputClass.RUNTIME


@dataclass(frozen=True)
class Source:
    """Where the source tree comes from and what it must hash to.

    `sha256` is the nix-base32 checksum of the fetched content: a NAR hash
    of the checkout for git sources, a flat file hash for url sources.
    """

    method: str
    url: str
    commit: str
    sha256: str

    def __post_init__(self):
        if self.method not in SOURCE_METHODS:
            raise ValueError(f"unknown source method {self.method!r}")
        if self.method == "git" and not self.commit:
            raise ValueError(f"git source {self.url} needs a commit")
        parse_sha256(self.sha256)


@dataclass(frozen=True)
class SearchPath:
    """An environment variable the package exports to its users."""

    variable: str
    files: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "files", tuple(self.files))


def git_version(version: str, revision: int, commit: str) -> str:
    """Version string for a package built from a git commit: 28.0.50-1.2b0f589."""
    return f"{version}-{revision}.{commit[:7]}"


@dataclass(frozen=True)
class BuildRecipe:
    name: str
    version: str
    revision: int = 0
    source: Source | None = None
    inputs: tuple[Input, ...] = ()
    flags: tuple[str, ...] = ()
    make_flags: tuple[str, ...] = ()
    phases: tuple[Phase, ...] = ()
    search_paths: tuple[SearchPath, ...] = ()

    def __post_init__(self):
        # Accept lists from callers; store tuples.
        for f in ("inputs", "flags", "make_flags", "phases", "search_paths"):
            object.__setattr__(self, f, tuple(getattr(self, f)))

        if self.revision < 0:
            raise ValueError(f"{self.name}: revision must be >= 0")

        seen_phases: set[str] = set()
        for p in self.phases:
            if p.name in seen_phases:
                raise ValueError(f"{self.name}: duplicate phase {p.name!r}")
            seen_phases.add(p.name)

        seen_inputs: set[tuple[InputClass, str]] = set()
        for i in self.inputs:
            key = (i.kind, i.name)
            if key in seen_inputs:
                raise ValueError(
                    f"{self.name}: duplicate {i.kind.value} input {i.name!r}"
                )
            seen_inputs.add(key)

    @property
    def full_version(self) -> str:
        if self.source is not None and self.source.method == "git":
            return git_version(self.version, self.revision, self.source.commit)
        return self.version

    def phase_names(self) -> list[str]:
        return [p.name for p in self.phases]

    def phase_index(self, name: str) -> int | None:
        for i, p in enumerate(self.phases):
            if p.name == name:
                return i
        return None

    def phase(self, name: str) -> Phase:
        i = self.phase_index(name)
        if i is None:
            raise KeyError(f"{self.name} has no phase {name!r}")
        return self.phases[i]

    def inputs_of(self, kind: InputClass) -> tuple[Input, ...]:
        return tuple(i for i in self.inputs if i.kind is kind)

    def input(self, kind: InputClass, name: str) -> Input | None:
        for i in self.inputs:
            if i.kind is kind and i.name == name:
                return i
        return None

    def search_path(self, variable: str) -> SearchPath | None:
        for sp in self.search_paths:
            if sp.variable == variable:
                return sp
        return None

    def replace(self, **changes) -> BuildRecipe:
        """Copy with some fields changed. Like package/inherit."""
        return dataclasses.replace(self, **changes)

    def __str__(self) -> str:
        return f"{self.name}@{self.full_version}"


def ref(recipe: BuildRecipe) -> str:
    """Package reference for using `recipe` as another recipe's input."""
    return f"{recipe.name}@{recipe.version}"
