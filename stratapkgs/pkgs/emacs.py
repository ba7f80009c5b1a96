"""emacs — the extensible, customizable text editor.

The released GTK build, used as the base of every variant in the
channel. Emacs dumps its state into a .pdmp file whose name encodes the
executable name, so the glib-or-gtk wrapper (which renames the binary
to .emacs-real) would make the dump unfindable. restore-emacs-pdmp puts
it back under the name the wrapped binary looks for.
"""

from strata.overlay import Overlay, add_after, add_before, apply_overlay
from strata.recipe import BuildRecipe, Input, InputClass, SearchPath
from stratapkgs.fetch import gnu_url, url_fetch
from stratapkgs.gnu_build import glib_or_gtk_recipe

VERSION = "27.1"
SHA256 = "0h9f2wpmp6rb5rfwvqwv1ia1nw86h74p7hnz3vb3gjazj67i4k2a"

PATCH_PROGRAM_FILE_NAMES = """\
substitute() { sed -i "s|$2|$3|g" "$1"; }
substitute src/callproc.c '"/bin/sh"' "\\"$(command -v sh)\\""
substitute lisp/term.el '"/bin/sh"' "\\"$(command -v sh)\\""
"""

FIX_BIN_PWD = """\
# Use `pwd', not `/bin/pwd'.
sed -i 's|/bin/pwd|pwd|g' $(find . -name 'Makefile.in')
"""

INSTALL_SITE_START = """\
# Load autoloads of packages installed into the profile.
mkdir -p "$out/share/emacs/site-lisp"
cat > "$out/share/emacs/site-lisp/site-start.el" <<'EOF'
(when (require 'guix-emacs nil t)
  (guix-emacs-autoload-packages))
EOF
"""

RESTORE_EMACS_PDMP = """\
for pdmp in "$out"/libexec/emacs/*/*/emacs-*.pdmp; do
  name=$(basename "$pdmp")
  cp "$pdmp" "$(dirname "$pdmp")/.emacs-${name#emacs-}-real.pdmp"
done
"""

STRIP_DOUBLE_WRAP = """\
# glib-or-gtk-wrap wraps the already-wrapped binary; undo one layer.
cd "$out/bin"
if [ -e .emacs-real-real ]; then mv .emacs-real-real .emacs-real; fi
"""


def make_emacs() -> BuildRecipe:
    """Build Emacs 27.1 with GTK, Cairo and dynamic modules."""
    base = glib_or_gtk_recipe(
        name="emacs",
        version=VERSION,
        source=url_fetch(gnu_url("emacs", VERSION), SHA256),
        inputs=[
            Input("pkg-config", "pkg-config@0.29.2", InputClass.NATIVE),
            Input("texinfo", "texinfo@6.7", InputClass.NATIVE),
            Input("gnutls", "gnutls@3.6.15"),
            Input("ncurses", "ncurses@6.2"),
            Input("gtk+", "gtk+@3.24.24"),
            Input("cairo", "cairo@1.16.0"),
            Input("harfbuzz", "harfbuzz@2.6.4"),
            Input("libxml2", "libxml2@2.9.10"),
            Input("jansson", "jansson@2.13.1"),
            Input("librsvg", "librsvg@2.40.21"),
            Input("libjpeg-turbo", "libjpeg-turbo@2.0.5"),
            Input("libpng", "libpng@1.6.37"),
            Input("giflib", "giflib@5.2.1"),
            Input("libtiff", "libtiff@4.1.0"),
            Input("dbus", "dbus@1.12.16"),
            Input("acl", "acl@2.2.53"),
            Input("gmp", "gmp@6.2.0"),
            Input("zlib", "zlib@1.2.11"),
        ],
        flags=["--with-modules", "--with-cairo", "--disable-build-details"],
        search_paths=[
            SearchPath("EMACSLOADPATH", ("share/emacs/site-lisp",)),
            SearchPath("INFOPATH", ("share/info",)),
        ],
    )
    return apply_overlay(base, Overlay(
        name="emacs-phases",
        phase_edits=[
            add_after("unpack", "patch-program-file-names", PATCH_PROGRAM_FILE_NAMES),
            add_before("configure", "fix-/bin/pwd", FIX_BIN_PWD),
            add_after("install", "install-site-start", INSTALL_SITE_START),
            add_after("glib-or-gtk-wrap", "restore-emacs-pdmp", RESTORE_EMACS_PDMP),
            add_after("restore-emacs-pdmp", "strip-double-wrap", STRIP_DOUBLE_WRAP),
        ],
    ))
