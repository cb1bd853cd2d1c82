"""
Recipe Engine - per-category quotas for blended mixes.

Base recipes are defined for a canonical 35-track mix. Each category is
scaled and rounded independently, so quotas may drift a track or two from
the requested length; the selector's termination condition absorbs that.
"""

import logging
import math

from .constants import (
    BASE_RECIPE_TOTAL,
    BASE_RECIPES,
    CALM_THRESHOLD,
    DEFAULT_RECIPE_ID,
    ENERGY_SHIFT,
    GENRE_HYPE_MIXES,
    HYPE_THRESHOLD,
)
from .models import Recipe, RuleSettings

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(10.5)
        11
        >>> round_half_up(2.49)
        2
    """
    return int(math.floor(value + 0.5))


def compute_recipe(mix_id: str, rules: RuleSettings) -> Recipe:
    """Compute the quotas for a blended mix.

    Args:
        mix_id: Blended mix option id; unknown ids use the default recipe
        rules: Effective rule settings

    Returns:
        Recipe with scaled, energy-adjusted quotas and the novel-track quota
    """
    length = rules.playlist_length
    base = BASE_RECIPES.get(mix_id)
    if base is None:
        logger.warning(f"No recipe for {mix_id!r}, using {DEFAULT_RECIPE_ID}")
        base = BASE_RECIPES[DEFAULT_RECIPE_ID]

    scale = length / BASE_RECIPE_TOTAL
    recipe = Recipe(**{category: round_half_up(count * scale) for category, count in base.items()})

    shift = round_half_up(ENERGY_SHIFT * scale)
    if rules.calm_hype <= CALM_THRESHOLD:
        recipe.acoustic += shift
        # The hype category with more remaining budget donates
        if recipe.curated_genre >= recipe.secondary_signal:
            recipe.curated_genre = max(0, recipe.curated_genre - shift)
        else:
            recipe.secondary_signal = max(0, recipe.secondary_signal - shift)
    elif rules.calm_hype >= HYPE_THRESHOLD:
        recipe.acoustic = max(0, recipe.acoustic - shift)
        if mix_id in GENRE_HYPE_MIXES:
            recipe.curated_genre += shift
        else:
            recipe.secondary_signal += shift

    recipe.novel = round_half_up(length * rules.discover_level)

    logger.debug(
        f"Recipe for {mix_id} (length={length}, calm_hype={rules.calm_hype}, "
        f"discover={rules.discover_level}): {recipe.as_dict()}"
    )
    return recipe
