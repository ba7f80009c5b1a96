"""Recipe collection: GCC/libgccjit and the native-comp Emacs variants."""

from stratapkgs.channel import EditorPkgs
from stratapkgs.package_set import RecipeSet

__all__ = ["EditorPkgs", "RecipeSet"]
