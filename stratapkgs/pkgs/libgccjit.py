"""libgccjit — GCC's embeddable JIT library.

Inherits gcc and rebuilds it with only the "jit" front end. The GCC
binaries that still get installed would collide with the real gcc in a
profile, so they are deleted after install.
"""

from strata.overlay import Overlay, add_after, apply_overlay
from strata.recipe import BuildRecipe

REMOVE_CONFLICTING_FILES = """\
# Keep only the library; drop compiler drivers that collide with gcc.
find "$out/bin" -regextype posix-extended \\
     -regex '.*/(c\\+\\+|cpp|g\\+\\+|gcov.*|gcc|gcc-.*|.*-gcc.*)' -delete
"""


def libgccjit_overlay() -> Overlay:
    return Overlay(
        name="libgccjit",
        drop_flags=["--enable-languages"],
        prepend_flags=[
            "--enable-host-shared",
            "--disable-bootstrap",
            "--enable-languages=jit",
        ],
        phase_edits=[
            add_after("install", "remove-broken-or-conflicting-files",
                      REMOVE_CONFLICTING_FILES),
        ],
    )


def make_libgccjit(gcc: BuildRecipe) -> BuildRecipe:
    """Build libgccjit from the given gcc recipe."""
    return apply_overlay(gcc, libgccjit_overlay()).replace(name="libgccjit")
