"""Canonical text form of recipes and overlays (ATerm style).

A recipe serializes to one line:

    Recipe(
        "emacs","27.1","0",                                  # name, version, revision
        [("url","mirror://gnu/emacs/...","","0h9f2w...")],   # source (0 or 1 entries)
        [("native","pkg-config","pkg-config@0.29.2"), ...],  # inputs, declaration order
        ["--with-modules", ...],                             # configure flags
        [],                                                  # make flags
        [("unpack","gnu:unpack"), ...],                      # phases, pipeline order
        [("EMACSLOADPATH",["share/emacs/site-lisp"]), ...]   # search paths
    )

Nothing is sorted: every list is ordered in the recipe, and order is
part of its meaning. The digest of this text identifies a recipe, so two
recipes with the same digest are interchangeable.

    parse(serialize(r)) == r
"""

from collections.abc import Callable
from typing import TypeVar

from strata.hash import short_digest
from strata.overlay import DELETE, Overlay, PhaseEdit
from strata.recipe import BuildRecipe, Input, InputClass, Phase, SearchPath, Source

T = TypeVar("T")


# --- parser ---

class _Parser:
    def __init__(self, s: str):
        self.s = s
        self.pos = 0

    def peek(self) -> str:
        if self.pos >= len(self.s):
            raise ValueError("unexpected end of input")
        return self.s[self.pos]

    def expect(self, ch: str) -> None:
        if self.peek() != ch:
            raise ValueError(f"expected {ch!r} at pos {self.pos}, got {self.s[self.pos]!r}")
        self.pos += 1

    def expect_str(self, s: str) -> None:
        end = self.pos + len(s)
        if self.s[self.pos:end] != s:
            raise ValueError(f"expected {s!r} at pos {self.pos}")
        self.pos = end

    def parse_string(self) -> str:
        self.expect('"')
        parts: list[str] = []
        while self.peek() != '"':
            ch = self.s[self.pos]
            if ch == '\\':
                self.pos += 1
                ch = self.peek()
                parts.append({'n': '\n', 'r': '\r', 't': '\t'}.get(ch, ch))
            else:
                parts.append(ch)
            self.pos += 1
        self.expect('"')
        return "".join(parts)

    def parse_list(self, item: Callable[[], T]) -> list[T]:
        self.expect('[')
        items: list[T] = []
        while self.peek() != ']':
            if items:
                self.expect(',')
            items.append(item())
        self.expect(']')
        return items

    def parse_tuple(self, n: int) -> list[str]:
        """A parenthesized tuple of n strings."""
        self.expect('(')
        fields = []
        for i in range(n):
            if i:
                self.expect(',')
            fields.append(self.parse_string())
        self.expect(')')
        return fields

    def parse_search_path(self) -> SearchPath:
        self.expect('(')
        variable = self.parse_string()
        self.expect(',')
        files = self.parse_list(self.parse_string)
        self.expect(')')
        return SearchPath(variable, tuple(files))

    def end(self) -> None:
        if self.pos != len(self.s):
            raise ValueError(f"trailing data at pos {self.pos}")


def parse(text: str) -> BuildRecipe:
    """Parse the canonical text form back into a BuildRecipe."""
    p = _Parser(text)
    p.expect_str("Recipe(")
    name = p.parse_string()
    p.expect(',')
    version = p.parse_string()
    p.expect(',')
    revision = p.parse_string()
    p.expect(',')
    sources = p.parse_list(lambda: Source(*p.parse_tuple(4)))
    p.expect(',')
    inputs = p.parse_list(lambda: p.parse_tuple(3))
    p.expect(',')
    flags = p.parse_list(p.parse_string)
    p.expect(',')
    make_flags = p.parse_list(p.parse_string)
    p.expect(',')
    phases = p.parse_list(lambda: Phase(*p.parse_tuple(2)))
    p.expect(',')
    search_paths = p.parse_list(p.parse_search_path)
    p.expect(')')
    p.end()

    if len(sources) > 1:
        raise ValueError(f"{name}: a recipe has at most one source")
    if not revision.isdigit():
        raise ValueError(f"{name}: revision must be a counter, got {revision!r}")

    return BuildRecipe(
        name=name,
        version=version,
        revision=int(revision),
        source=sources[0] if sources else None,
        inputs=[Input(n, src, InputClass(kind)) for kind, n, src in inputs],
        flags=flags,
        make_flags=make_flags,
        phases=phases,
        search_paths=search_paths,
    )


# --- serializer ---

def _escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def _q(s: str) -> str:
    return f'"{_escape(s)}"'


def _strings(items) -> str:
    return "[" + ",".join(_q(s) for s in items) + "]"


def _tuples(rows) -> str:
    return "[" + ",".join("(" + ",".join(_q(f) for f in row) + ")" for row in rows) + "]"


def _inputs(inputs) -> str:
    return _tuples((i.kind.value, i.name, i.source) for i in inputs)


def serialize(recipe: BuildRecipe) -> str:
    """Serialize a BuildRecipe to its canonical text form."""
    src = recipe.source
    sources = [] if src is None else [(src.method, src.url, src.commit, src.sha256)]
    search_paths = ",".join(
        f"({_q(sp.variable)},{_strings(sp.files)})" for sp in recipe.search_paths
    )
    parts = [
        _q(recipe.name),
        _q(recipe.version),
        _q(str(recipe.revision)),
        _tuples(sources),
        _inputs(recipe.inputs),
        _strings(recipe.flags),
        _strings(recipe.make_flags),
        _tuples((p.name, p.payload) for p in recipe.phases),
        f"[{search_paths}]",
    ]
    return "Recipe(" + ",".join(parts) + ")"


def _edit_row(edit: PhaseEdit) -> tuple[str, str, str, str]:
    if edit.op == DELETE:
        return (edit.op, edit.anchor, "", "")
    return (edit.op, edit.anchor, edit.phase.name, edit.phase.payload)


def serialize_overlay(overlay: Overlay) -> str:
    """Serialize an Overlay to its canonical text form."""
    parts = [
        _q(overlay.name),
        _strings(overlay.prepend_flags),
        _strings(overlay.append_flags),
        _strings(overlay.drop_flags),
        _strings(overlay.prepend_make_flags),
        _strings(overlay.append_make_flags),
        _tuples(_edit_row(e) for e in overlay.phase_edits),
        _inputs(overlay.inputs),
    ]
    return "Overlay(" + ",".join(parts) + ")"


def recipe_digest(recipe: BuildRecipe) -> str:
    return short_digest(serialize(recipe))


def overlay_digest(overlay: Overlay) -> str:
    return short_digest(serialize_overlay(overlay))
