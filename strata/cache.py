"""Memoized overlay application.

Applying the same overlay to the same base always yields the same recipe,
so results can be shared. Keys are content digests, not object identity:
two equal recipes built independently hit the same entry.

    cache = OverlayCache()
    a = cache.apply(emacs, native_comp)
    b = cache.apply(emacs, native_comp)   # hit, a is b
"""

import logging

from strata.overlay import Overlay, apply_overlay
from strata.recipe import BuildRecipe
from strata.serialize import overlay_digest, recipe_digest

logger = logging.getLogger(__name__)


class OverlayCache:
    def __init__(self):
        self._results: dict[tuple[str, str, bool], BuildRecipe] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)

    def apply(self, recipe: BuildRecipe, overlay: Overlay, *,
              strict_inputs: bool = False) -> BuildRecipe:
        key = (recipe_digest(recipe), overlay_digest(overlay), strict_inputs)
        result = self._results.get(key)
        if result is not None:
            self.hits += 1
            logger.debug("cache hit: %s + %r", recipe.name, overlay.name)
            return result
        self.misses += 1
        logger.debug("cache miss: %s + %r", recipe.name, overlay.name)
        # Errors propagate and nothing is stored.
        result = apply_overlay(recipe, overlay, strict_inputs=strict_inputs)
        self._results[key] = result
        return result

    def clear(self) -> None:
        self._results.clear()
        self.hits = 0
        self.misses = 0
