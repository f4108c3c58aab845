"""
Variant Merger - Combine behavior models into one weighted model.

Variants of the first model are scaled by (1 - w), variants of the second by
w. Every variant is tagged with a merge index so that names stay unique:

    A: "browse"           -> "_1_browse"  (1 - w)
    B: "browse"           -> "_2_browse"  (w)

Indices already present in A are kept; indices already present in B are
shifted past A's indices, so sequential merges never collide.
"""

import logging
import math
from typing import Optional, Sequence

from .exceptions import MissingPreconditionError
from .models import BehaviorModel, Variant

logger = logging.getLogger(__name__)

DEFAULT_MERGE_WEIGHT = 0.5


def normalize_weight(weight: Optional[float], default: float = DEFAULT_MERGE_WEIGHT) -> float:
    """Return ``weight`` if it lies in [0, 1], otherwise ``default``."""
    if weight is None or math.isnan(weight) or weight < 0.0 or weight > 1.0:
        if weight is not None:
            logger.debug(f"Merge weight {weight} is outside [0, 1]; using {default}")
        return default
    return weight


def next_merge_index(model: BehaviorModel) -> int:
    """
    Smallest merge index not used by any variant of ``model``.

    Returns 1 if no variant carries a merge index yet.
    """
    indices = [v.merge_index for v in model.variants if v.merge_index is not None]
    return max([1] + [i + 1 for i in indices])


def _scaled(variant: Variant, factor: float) -> Variant:
    result = variant.copy()
    if result.probability is not None:
        result.probability *= factor
    return result


def merge_models(
    first: BehaviorModel,
    second: BehaviorModel,
    weight: Optional[float] = None,
) -> BehaviorModel:
    """
    Merge two behavior models.

    Args:
        first: Model whose variants keep (1 - weight) of their mass
        second: Model whose variants keep ``weight`` of their mass
        weight: Share of ``second`` in [0, 1]; 0.5 if None or out of range

    Returns:
        New BehaviorModel; neither input is modified or shared
    """
    weight = normalize_weight(weight)

    if first is second:
        return first.copy()

    first_index = next_merge_index(first)
    second_index = first_index + 1
    variants = []

    for variant in first.variants:
        merged = _scaled(variant, 1.0 - weight)
        if merged.merge_index is None:
            merged.merge_index = first_index
        variants.append(merged)

    for variant in second.variants:
        merged = _scaled(variant, weight)
        if merged.merge_index is None:
            merged.merge_index = second_index
        else:
            merged.merge_index += second_index
        logger.debug(f"Merged variant '{variant.name}' as '{merged.name}'")
        variants.append(merged)

    return BehaviorModel(variants=variants)


def merge_all(models: Sequence[BehaviorModel]) -> BehaviorModel:
    """
    Fold any number of models into one, giving each the same share.

    The i-th model (0-based, i >= 1) is merged with weight 1 / (i + 1), so
    after the fold every source model holds 1 / N of the total mass.

    Args:
        models: Models to merge (at least one)

    Returns:
        New merged BehaviorModel

    Raises:
        MissingPreconditionError: If no model is given
    """
    if not models:
        logger.error("At least one behavior model is required")
        raise MissingPreconditionError("At least one behavior model is required")

    merged = models[0].copy()
    for i, model in enumerate(models[1:], start=1):
        merged = merge_models(merged, model, 1.0 / (i + 1))

    logger.info(f"Merged {len(models)} behavior models into {merged.variant_count} variants")
    return merged
