"""emacs-native-comp — Emacs with ahead-of-time native compilation of Lisp.

Native compilation drives libgccjit both while building (every .el file
is compiled to a .eln with NATIVE_FULL_AOT=1) and at run time (packages
installed later are compiled on first load). Both need to find the
libgccjit library directory and the assembler/linker, so:

  - set-libgccjit-path puts libgccjit on LIBRARY_PATH for the build,
  - patch-driver-options bakes -B flags for binutils, glibc and libgccjit
    into comp.el's default driver options,
  - wrap-library-path wraps the installed binary so run-time compilation
    sees the same LIBRARY_PATH.

Tracks the native-comp development branch, pinned to one commit.
Re-pin COMMIT and SHA256 together; SHA256 is the NAR hash of the
checkout without .git, as printed by `strata hash-path --base32
--exclude-vcs`.
"""

from strata.overlay import Overlay, add_after, add_before
from strata.recipe import BuildRecipe, Input, ref
from stratapkgs.fetch import SAVANNAH_GIT

REPOSITORY = f"{SAVANNAH_GIT}/emacs.git"
COMMIT = "2b0f58957f81bd5c6ad1bbc2fa8a1f86e90e3bd9"
SHA256 = "0wp5mvrmp5dy6jh9r3h6a8mvmcr0vfc6rja1mds02vv0n1y9i8sj"
VERSION = "28.0.50"
REVISION = 1

HOST_TYPE = "x86_64-unknown-linux-gnu"


def libgccjit_libdir(libgccjit: BuildRecipe) -> str:
    return f"$libgccjit/lib/gcc/{HOST_TYPE}/{libgccjit.version}"


def native_comp_overlay(libgccjit: BuildRecipe) -> Overlay:
    libdir = libgccjit_libdir(libgccjit)
    return Overlay(
        name="native-comp",
        prepend_flags=["--with-native-compilation"],
        prepend_make_flags=["NATIVE_FULL_AOT=1"],
        phase_edits=[
            add_after("unpack", "patch-driver-options", f"""\
sed -i 's|(defcustom native-comp-driver-options nil|\\
(defcustom native-comp-driver-options (quote ("-B$binutils/bin/" "-B$glibc/lib/" "-B$libgccjit/lib/" "-B{libdir}/"))|' \\
    lisp/emacs-lisp/comp.el
"""),
            add_before("configure", "set-libgccjit-path", f"""\
export LIBRARY_PATH="{libdir}/${{LIBRARY_PATH:+:$LIBRARY_PATH}}"
"""),
            add_after("strip-double-wrap", "wrap-library-path", f"""\
wrapProgram "$out/bin/emacs-{VERSION}" \\
    --prefix LIBRARY_PATH : "{libdir}:$glibc/lib"
"""),
        ],
        inputs=[
            Input("libgccjit", ref(libgccjit)),
            Input("glibc", "glibc@2.31"),
            Input("binutils", "binutils@2.34"),
        ],
    )
