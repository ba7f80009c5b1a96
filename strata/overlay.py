"""Overlays — ordered edits layered onto a base recipe.

Python equivalent of inheriting a package and patching its arguments
(``substitute-keyword-arguments`` + ``modify-phases``)::

    native_comp = Overlay(
        name="native-comp",
        prepend_flags=["--with-native-compilation"],
        phase_edits=[
            add_before("configure", "set-libgccjit-path", "export LIBRARY_PATH=..."),
        ],
        inputs=[Input("libgccjit", "libgccjit@10.2.0")],
    )
    emacs_native_comp = apply_overlay(emacs, native_comp)

Applying an overlay never touches the base recipe; the result is a new
BuildRecipe. Overlays compose left to right, and a later overlay may
anchor on a phase an earlier one introduced.

Redeclared inputs: the first declaration wins. A redeclaration with a
different source is logged as a warning, or raises DuplicateInputError
when ``strict_inputs=True``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from strata.recipe import BuildRecipe, Input, Phase

logger = logging.getLogger(__name__)

BEFORE = "before"
AFTER = "after"
REPLACE = "replace"
DELETE = "delete"
PHASE_OPS = (BEFORE, AFTER, REPLACE, DELETE)


class AnchorNotFoundError(LookupError):
    """A phase edit names a phase the recipe does not have."""

    def __init__(self, recipe_name: str, op: str, anchor: str):
        super().__init__(f"{recipe_name}: cannot {op} {anchor!r}: no such phase")
        self.recipe_name = recipe_name
        self.op = op
        self.anchor = anchor


class DuplicateInputError(ValueError):
    """An overlay redeclares an input with a different source (strict mode)."""

    def __init__(self, recipe_name: str, existing: Input, new: Input):
        super().__init__(
            f"{recipe_name}: {existing.kind.value} input {existing.name!r} "
            f"is already {existing.source!r}, overlay declares {new.source!r}"
        )
        self.recipe_name = recipe_name
        self.existing = existing
        self.new = new


@dataclass(frozen=True)
class PhaseEdit:
    op: str
    anchor: str
    phase: Phase | None = None  # None only for delete

    def __post_init__(self):
        if self.op not in PHASE_OPS:
            raise ValueError(f"unknown phase edit {self.op!r}")
        if self.op == DELETE:
            if self.phase is not None:
                raise ValueError("delete takes no phase")
        elif self.phase is None:
            raise ValueError(f"{self.op} needs a phase")
        elif self.op == REPLACE and self.phase.name != self.anchor:
            raise ValueError(
                f"replacement for {self.anchor!r} must keep its name, "
                f"got {self.phase.name!r}"
            )


def add_before(anchor: str, name: str, payload: str) -> PhaseEdit:
    return PhaseEdit(BEFORE, anchor, Phase(name, payload))


def add_after(anchor: str, name: str, payload: str) -> PhaseEdit:
    return PhaseEdit(AFTER, anchor, Phase(name, payload))


def replace_phase(name: str, payload: str) -> PhaseEdit:
    return PhaseEdit(REPLACE, name, Phase(name, payload))


def delete_phase(name: str) -> PhaseEdit:
    return PhaseEdit(DELETE, name)


@dataclass(frozen=True)
class Overlay:
    """A bundle of edits. Every field is optional.

    drop_flags removes configure flags starting with any of the given
    prefixes; it runs before the prepend/append splice.
    """

    name: str = ""
    prepend_flags: tuple[str, ...] = ()
    append_flags: tuple[str, ...] = ()
    drop_flags: tuple[str, ...] = ()
    prepend_make_flags: tuple[str, ...] = ()
    append_make_flags: tuple[str, ...] = ()
    phase_edits: tuple[PhaseEdit, ...] = ()
    inputs: tuple[Input, ...] = ()

    def __post_init__(self):
        for f in ("prepend_flags", "append_flags", "drop_flags",
                  "prepend_make_flags", "append_make_flags",
                  "phase_edits", "inputs"):
            object.__setattr__(self, f, tuple(getattr(self, f)))
        if "" in self.drop_flags:
            raise ValueError(f"{self.name or 'overlay'}: empty drop_flags prefix would drop every flag")


def _edit_phases(recipe_name: str, phases: tuple[Phase, ...],
                 edits: tuple[PhaseEdit, ...]) -> list[Phase]:
    result = list(phases)
    for edit in edits:
        names = [p.name for p in result]
        if edit.anchor not in names:
            raise AnchorNotFoundError(recipe_name, edit.op, edit.anchor)
        i = names.index(edit.anchor)

        if edit.op in (BEFORE, AFTER):
            if edit.phase.name in names:
                raise ValueError(
                    f"{recipe_name}: phase {edit.phase.name!r} already exists"
                )
            result.insert(i if edit.op == BEFORE else i + 1, edit.phase)
            logger.debug("%s: add %r %s %r", recipe_name, edit.phase.name, edit.op, edit.anchor)
        elif edit.op == REPLACE:
            result[i] = edit.phase
            logger.debug("%s: replace %r", recipe_name, edit.anchor)
        else:
            del result[i]
            logger.debug("%s: delete %r", recipe_name, edit.anchor)
    return result


def _merge_inputs(recipe_name: str, inputs: tuple[Input, ...],
                  additions: tuple[Input, ...], strict: bool) -> list[Input]:
    merged = list(inputs)
    for new in additions:
        existing = next(
            (i for i in merged if i.kind is new.kind and i.name == new.name), None
        )
        if existing is None:
            merged.append(new)
            continue
        if existing.source == new.source:
            continue
        if strict:
            raise DuplicateInputError(recipe_name, existing, new)
        logger.warning(
            "%s: keeping %s input %s=%s, ignoring redeclaration as %s",
            recipe_name, existing.kind.value, existing.name,
            existing.source, new.source,
        )
    return merged


def _drop(flags, prefixes) -> list[str]:
    prefixes = tuple(prefixes)
    return [f for f in flags if not (prefixes and f.startswith(prefixes))]


def apply_overlay(recipe: BuildRecipe, overlay: Overlay, *,
                  strict_inputs: bool = False) -> BuildRecipe:
    """Return `recipe` with `overlay` applied. `recipe` itself is untouched.

    Raises AnchorNotFoundError if a phase edit names a missing phase, and
    DuplicateInputError for a conflicting redeclared input in strict mode.
    Nothing is returned on failure.
    """
    phases = _edit_phases(recipe.name, recipe.phases, overlay.phase_edits)
    inputs = _merge_inputs(recipe.name, recipe.inputs, overlay.inputs, strict_inputs)
    flags = [
        *overlay.prepend_flags,
        *_drop(recipe.flags, overlay.drop_flags),
        *overlay.append_flags,
    ]
    make_flags = [
        *overlay.prepend_make_flags,
        *recipe.make_flags,
        *overlay.append_make_flags,
    ]
    logger.debug("%s: applied overlay %r", recipe.name, overlay.name)
    return recipe.replace(
        phases=phases, inputs=inputs, flags=flags, make_flags=make_flags,
    )


def compose(recipe: BuildRecipe, *overlays: Overlay, cache=None,
            strict_inputs: bool = False) -> BuildRecipe:
    """Apply overlays left to right.

    If `cache` (a strata.cache.OverlayCache) is given, each step goes
    through it.
    """
    for overlay in overlays:
        if cache is not None:
            recipe = cache.apply(recipe, overlay, strict_inputs=strict_inputs)
        else:
            recipe = apply_overlay(recipe, overlay, strict_inputs=strict_inputs)
    return recipe


def merge_overlays(*overlays: Overlay) -> Overlay:
    """Fold overlays into one that has the same effect as applying them in order.

    Prepends stack (a later overlay's prepends come first), appends
    concatenate, and a later overlay's drop_flags also filters the flags
    earlier overlays added.
    """
    merged = Overlay()
    for o in overlays:
        merged = Overlay(
            name="+".join(n for n in (merged.name, o.name) if n),
            prepend_flags=(*o.prepend_flags, *_drop(merged.prepend_flags, o.drop_flags)),
            append_flags=(*_drop(merged.append_flags, o.drop_flags), *o.append_flags),
            drop_flags=(*merged.drop_flags, *o.drop_flags),
            prepend_make_flags=(*o.prepend_make_flags, *merged.prepend_make_flags),
            append_make_flags=(*merged.append_make_flags, *o.append_make_flags),
            phase_edits=(*merged.phase_edits, *o.phase_edits),
            inputs=(*merged.inputs, *o.inputs),
        )
    return merged
