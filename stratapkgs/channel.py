"""The published channel: every recipe a user can install from it.

    gcc ──libgccjit──▶ libgccjit
    emacs ──native-comp──▶ (pin) ──▶ emacs-native-comp
          ──native-comp──pgtk──▶ (pin) ──▶ emacs-pgtk-native-comp

Base recipes are defined in ``stratapkgs.pkgs.*``; this set wires them
together. Overlay results go through one OverlayCache per set, so the
native-comp step shared by both Emacs variants is computed once.
"""

from functools import cached_property

from strata.cache import OverlayCache
from strata.overlay import compose
from strata.source import instantiate_from_source
from stratapkgs.package_set import RecipeSet
from stratapkgs.pkgs import emacs_native_comp, emacs_pgtk
from stratapkgs.pkgs.emacs import make_emacs
from stratapkgs.pkgs.gcc import make_gcc
from stratapkgs.pkgs.libgccjit import make_libgccjit


class EditorPkgs(RecipeSet):

    @cached_property
    def _cache(self) -> OverlayCache:
        return OverlayCache()

    @cached_property
    def gcc(self):
        return make_gcc()

    @cached_property
    def libgccjit(self):
        return self.call(make_libgccjit)

    @cached_property
    def emacs(self):
        return make_emacs()

    @cached_property
    def native_comp(self):
        return self.call(emacs_native_comp.native_comp_overlay)

    @cached_property
    def pgtk(self):
        return emacs_pgtk.pgtk_overlay()

    @cached_property
    def emacs_native_comp(self):
        return instantiate_from_source(
            compose(self.emacs, self.native_comp, cache=self._cache),
            repository=emacs_native_comp.REPOSITORY,
            commit=emacs_native_comp.COMMIT,
            checksum=emacs_native_comp.SHA256,
            version=emacs_native_comp.VERSION,
            revision=emacs_native_comp.REVISION,
            name="emacs-native-comp",
        )

    @cached_property
    def emacs_pgtk_native_comp(self):
        return instantiate_from_source(
            compose(self.emacs, self.native_comp, self.pgtk, cache=self._cache),
            repository=emacs_pgtk.REPOSITORY,
            commit=emacs_pgtk.COMMIT,
            checksum=emacs_pgtk.SHA256,
            version=emacs_pgtk.VERSION,
            revision=emacs_pgtk.REVISION,
            name="emacs-pgtk-native-comp",
        )
