"""Aggregation helpers shared by the storage adapters."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from brewmate.schema.brew import BrewHistoryEntry
from brewmate.schema.recommendation import CommunityFlavorStat, RecipeProfile
from brewmate.utils.vectors import taste_cosine_similarity


def aggregate_flavor_stats(entries: Iterable[BrewHistoryEntry]) -> dict[str, CommunityFlavorStat]:
    """Average and population variance of each flavor note across entries."""
    scores: defaultdict[str, list[float]] = defaultdict(list)
    for entry in entries:
        for note, value in entry.flavor_notes.items():
            scores[note].append(float(value))
    stats: dict[str, CommunityFlavorStat] = {}
    for note, values in scores.items():
        average = sum(values) / len(values)
        variance = sum((value - average) ** 2 for value in values) / len(values)
        stats[note] = CommunityFlavorStat(
            average=round(average, 3), variance=round(variance, 3), sample_size=len(values)
        )
    return stats


def rank_similar_recipes(
    target: RecipeProfile, candidates: Iterable[RecipeProfile], limit: int
) -> list[RecipeProfile]:
    """Recipes sharing a brew method or tag with ``target``, most similar first."""
    related = [
        recipe
        for recipe in candidates
        if recipe.recipe_id != target.recipe_id
        and (
            (target.brew_method and recipe.brew_method == target.brew_method)
            or set(recipe.tags) & set(target.tags)
        )
    ]
    related.sort(key=lambda recipe: taste_cosine_similarity(recipe.taste_vector, target.taste_vector), reverse=True)
    return related[:limit]
