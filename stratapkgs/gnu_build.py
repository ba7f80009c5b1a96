"""Recipe constructors for the GNU and glib-or-gtk build systems.

Every gnu-build-system package runs the same pipeline unless a recipe
edits it. The phase payloads here are markers ("gnu:configure"): the
host resolves them to its own implementation of each standard phase.

Usage::

    recipe = gnu_recipe(
        name="gcc", version="10.2.0", source=url_fetch(...),
        inputs=[Input("gmp", "gmp@6.2.0"), ...],
        flags=["--disable-multilib"],
    )
"""

from strata.overlay import Overlay, add_after, apply_overlay
from strata.recipe import BuildRecipe, Input, Phase, SearchPath, Source

STANDARD_PHASES = (
    "set-SOURCE-DATE-EPOCH",
    "set-paths",
    "install-locale",
    "unpack",
    "bootstrap",
    "patch-usr-bin-file",
    "patch-source-shebangs",
    "configure",
    "patch-generated-file-shebangs",
    "build",
    "check",
    "install",
    "patch-shebangs",
    "strip",
    "validate-runpath",
    "validate-documentation-location",
    "delete-info-dir-file",
    "patch-dot-desktop-files",
    "make-dynamic-linker-cache",
    "install-license-files",
    "reset-gzip-timestamps",
    "compress-documentation",
)


def standard_phases(build_system: str = "gnu") -> tuple[Phase, ...]:
    return tuple(Phase(name, f"{build_system}:{name}") for name in STANDARD_PHASES)


# glib-or-gtk-build-system is the GNU pipeline plus wrapping and schema
# compilation after install. Each add-after lands directly behind
# install, so the last one listed runs first.
GLIB_OR_GTK = Overlay(
    name="glib-or-gtk",
    phase_edits=[
        add_after("install", "glib-or-gtk-wrap", "glib-or-gtk:glib-or-gtk-wrap"),
        add_after("install", "glib-or-gtk-compile-schemas",
                  "glib-or-gtk:glib-or-gtk-compile-schemas"),
        add_after("install", "generate-gdk-pixbuf-loaders-cache-file",
                  "glib-or-gtk:generate-gdk-pixbuf-loaders-cache-file"),
    ],
)


def gnu_recipe(
    *,
    name: str,
    version: str,
    source: Source,
    revision: int = 0,
    inputs: list[Input] | None = None,
    flags: list[str] | None = None,
    make_flags: list[str] | None = None,
    search_paths: list[SearchPath] | None = None,
) -> BuildRecipe:
    """Create a recipe that runs the standard GNU phases.

    Args:
        name: Package name (e.g. "gcc").
        version: Upstream version (e.g. "10.2.0").
        source: Where to fetch the source and its checksum.
        revision: Recipe revision for the same upstream version.
        inputs: Build inputs, any class.
        flags: configure flags.
        make_flags: make flags.
        search_paths: Environment search paths the package exports.
    """
    return BuildRecipe(
        name=name,
        version=version,
        revision=revision,
        source=source,
        inputs=inputs or [],
        flags=flags or [],
        make_flags=make_flags or [],
        phases=standard_phases("gnu"),
        search_paths=search_paths or [],
    )


def glib_or_gtk_recipe(**kw) -> BuildRecipe:
    """Like gnu_recipe(), with the glib-or-gtk phases after install."""
    return apply_overlay(gnu_recipe(**kw), GLIB_OR_GTK)
