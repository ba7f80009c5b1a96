"""Lazy recipe set with auto-injection.

Define recipes and overlays as @cached_property methods on a RecipeSet
subclass. Dependencies are resolved by parameter name via
inspect.signature:

    class MyPkgs(RecipeSet):
        @cached_property
        def gcc(self):
            return make_gcc()

        @cached_property
        def libgccjit(self):
            return self.call(lambda gcc: apply_overlay(gcc, libgccjit_overlay()))

Each attribute is computed at most once per instance (@cached_property),
so a variant derived from a base is built once and then shared.
"""

import inspect
from functools import cached_property

from strata.recipe import BuildRecipe


class RecipeSet:
    """Base class for a lazily-evaluated recipe set."""

    def call(self, fn):
        """Resolve fn's parameters from this set and call it.

            self.call(lambda gcc, emacs: ...)
            # equivalent to: fn(gcc=self.gcc, emacs=self.emacs)
        """
        sig = inspect.signature(fn)
        kwargs = {}
        for name in sig.parameters:
            if name == "self":
                continue
            if not hasattr(self, name):
                raise AttributeError(
                    f"recipe set has no attribute {name!r} "
                    f"(required by {fn.__qualname__})"
                )
            kwargs[name] = getattr(self, name)
        return fn(**kwargs)

    @classmethod
    def attributes(cls) -> list[str]:
        """Public cached_property names, in definition order (bases first)."""
        names: list[str] = []
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if (isinstance(value, cached_property)
                        and not name.startswith("_") and name not in names):
                    names.append(name)
        return names

    def recipes(self) -> dict[str, BuildRecipe]:
        """Every recipe in the set, keyed by attribute name."""
        result = {}
        for name in self.attributes():
            value = getattr(self, name)
            if isinstance(value, BuildRecipe):
                result[name] = value
        return result

    def lookup(self, name: str) -> BuildRecipe:
        """Find a recipe by attribute name (emacs_native_comp) or recipe name."""
        recipes = self.recipes()
        if name in recipes:
            return recipes[name]
        for recipe in recipes.values():
            if recipe.name == name:
                return recipe
        raise KeyError(f"no recipe named {name!r}")
