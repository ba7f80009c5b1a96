"""gcc — the GNU Compiler Collection, 10.x.

The known-good upstream base that libgccjit is derived from. Only what
the channel relies on is modeled: the configure flags libgccjit filters,
and the pre/post-configure phases it runs around.
"""

from strata.overlay import Overlay, add_after, add_before, apply_overlay
from strata.recipe import BuildRecipe, Input, InputClass
from stratapkgs.fetch import GNU_MIRROR, url_fetch
from stratapkgs.gnu_build import gnu_recipe

VERSION = "10.2.0"
SHA256 = "130xdkhmz1bc2kzx061s3sfwk36xah1fw5w332c0nzwwpdl47pdq"

PRE_CONFIGURE = """\
# Don't search /usr or the local prefix for headers.
sed -i 's|/usr/include|/no-such-dir|g' gcc/config/linux.h
export CPATH="$libc/include${CPATH:+:$CPATH}"
"""

POST_CONFIGURE = """\
# Keep the build's own libstdc++ out of the runpath.
sed -i 's|^RPATH_ENVVAR =.*|RPATH_ENVVAR = LD_RUN_PATH|' Makefile
"""


def make_gcc() -> BuildRecipe:
    """Build GCC 10.2.0 with the C and C++ front ends."""
    base = gnu_recipe(
        name="gcc",
        version=VERSION,
        source=url_fetch(f"{GNU_MIRROR}/gcc/gcc-{VERSION}/gcc-{VERSION}.tar.xz", SHA256),
        inputs=[
            Input("perl", "perl@5.30.2", InputClass.NATIVE),
            Input("texinfo", "texinfo@6.7", InputClass.NATIVE),
            Input("gmp", "gmp@6.2.0"),
            Input("mpfr", "mpfr@4.0.2"),
            Input("mpc", "mpc@1.1.0"),
            Input("isl", "isl@0.22.1"),
            Input("zlib", "zlib@1.2.11"),
        ],
        flags=[
            "--enable-plugin",
            "--enable-languages=c,c++",
            "--disable-multilib",
            "--with-system-zlib",
            "--disable-libstdcxx-pch",
            "--with-local-prefix=/no-gcc-local-prefix",
        ],
        make_flags=["BOOT_CFLAGS=-O2 -g0"],
    )
    return apply_overlay(base, Overlay(
        name="gcc-phases",
        phase_edits=[
            add_before("configure", "pre-configure", PRE_CONFIGURE),
            add_after("configure", "post-configure", POST_CONFIGURE),
        ],
    ))
