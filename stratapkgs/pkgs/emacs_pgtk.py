"""emacs-pgtk-native-comp — native-comp Emacs rendering through pure GTK.

The pgtk branch draws everything with GTK/Cairo instead of X11 calls, so
it runs natively on Wayland. It layers on top of the native-comp
overlay; xwidgets need webkitgtk, and GTK needs the desktop schemas and
TLS module at run time, which are propagated to the profile.

COMMIT and SHA256 are illustrative pins, not a published flatwhatson/emacs
revision. Replace both with a real commit and the NAR hash of its
checkout (`strata hash-path --base32 --exclude-vcs`) before expecting
`strata verify` to pass.
"""

from strata.overlay import Overlay
from strata.recipe import Input, InputClass

REPOSITORY = "https://github.com/flatwhatson/emacs.git"
COMMIT = "a5d4f8b6e0c2b5f0d1e9a7c3b2f8e6d4c0a1b3e5"
SHA256 = "1s5qy5dglyqh1rwbpa7zkr8pj4cjhc6pzpfzj6r1i5rfd7mblnhn"
VERSION = "28.0.50"
REVISION = 2


def pgtk_overlay() -> Overlay:
    return Overlay(
        name="pgtk",
        prepend_flags=["--with-pgtk", "--with-xwidgets"],
        inputs=[
            Input("webkitgtk", "webkitgtk@2.30.4"),
            Input("gsettings-desktop-schemas", "gsettings-desktop-schemas@3.34.0",
                  InputClass.PROPAGATED),
            Input("glib-networking", "glib-networking@2.62.2", InputClass.PROPAGATED),
        ],
    )
