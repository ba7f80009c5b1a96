"""strata — layer build-phase edits onto package recipes."""

from strata.overlay import (
    AnchorNotFoundError,
    DuplicateInputError,
    Overlay,
    add_after,
    add_before,
    apply_overlay,
    compose,
    delete_phase,
    merge_overlays,
    replace_phase,
)
from strata.recipe import BuildRecipe, Input, InputClass, Phase, SearchPath, Source
from strata.source import ChecksumMismatchError, instantiate_from_source, verify_source

__all__ = [
    "BuildRecipe", "Input", "InputClass", "Phase", "SearchPath", "Source",
    "Overlay", "add_before", "add_after", "replace_phase", "delete_phase",
    "apply_overlay", "compose", "merge_overlays",
    "instantiate_from_source", "verify_source",
    "AnchorNotFoundError", "DuplicateInputError", "ChecksumMismatchError",
]
