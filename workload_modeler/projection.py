"""
Matrix Projector - Dense transition matrix for one behavior variant.

Load drivers consume a behavior as an N x N "matrix mix": row i holds the
transition from state i to every state j, the entry state always at index 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from .exceptions import MalformedReferenceError, MissingPreconditionError
from .models import Variant

logger = logging.getLogger(__name__)


@dataclass
class TransitionCell:
    """One cell of the matrix mix."""

    probability: float = 0.0
    mean: Optional[float] = None
    deviation: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"probability": self.probability}
        if self.mean is not None:
            data["mean"] = self.mean
            data["deviation"] = self.deviation
        return data


@dataclass
class TransitionMatrix:
    """Dense transition matrix with the entry state first."""

    state_ids: list[str]
    rows: list[list[TransitionCell]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.state_ids)

    @property
    def initial_state_id(self) -> str:
        return self.state_ids[0]

    def cell(self, source: str, target: str) -> TransitionCell:
        """Cell for the transition ``source`` -> ``target``."""
        return self.rows[self.state_ids.index(source)][self.state_ids.index(target)]

    def probabilities(self) -> np.ndarray:
        """Probability part of the matrix as a float64 array."""
        return np.array(
            [[c.probability for c in row] for row in self.rows],
            dtype=np.float64,
        ).reshape(self.size, self.size)

    def row_sums(self) -> np.ndarray:
        return self.probabilities().sum(axis=1)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "states": list(self.state_ids),
            "matrix": [[c.to_dict() for c in row] for row in self.rows],
        }


def _cell_for(transition) -> TransitionCell:
    if transition is None:
        return TransitionCell()
    if transition.think_time_mean is None:
        return TransitionCell(probability=transition.probability)

    deviation = transition.think_time_deviation
    return TransitionCell(
        probability=transition.probability,
        mean=transition.think_time_mean,
        deviation=deviation if deviation is not None else 0.0,
    )


def project_variant(variant: Variant) -> TransitionMatrix:
    """
    Project a variant's transition lists onto a dense matrix.

    The variant itself is not reordered; the matrix orders states as the
    variant does, except that the entry state is moved to the front.

    Args:
        variant: Variant to project

    Returns:
        TransitionMatrix over all states of the variant

    Raises:
        MissingPreconditionError: If the variant has no states or no entry state
        MalformedReferenceError: If the entry state is not one of the states
    """
    if variant.states is None:
        logger.error(f"Behavior '{variant.name}' does not contain any markov states")
        raise MissingPreconditionError(
            f"Behavior '{variant.name}' does not contain any markov states",
            variant=variant.name,
        )

    initial_id = variant.initial_state_id
    if initial_id is None:
        logger.error(f"Initial state is missing in behavior '{variant.name}'")
        raise MissingPreconditionError(
            f"Initial state is missing in behavior '{variant.name}'",
            variant=variant.name,
        )

    initial = variant.get_state(initial_id)
    if initial is None:
        logger.error(f"Initial state '{initial_id}' is not a state of behavior '{variant.name}'")
        raise MalformedReferenceError(initial_id, variant=variant.name)

    ordered = [initial] + [s for s in variant.states if s is not initial]
    state_ids = [s.state_id for s in ordered]

    rows = []
    for state in ordered:
        if not state.transitions:
            rows.append([TransitionCell() for _ in ordered])
            continue
        rows.append([_cell_for(state.get_transition(target)) for target in state_ids])

    logger.debug(f"Projected behavior '{variant.name}' onto a {len(ordered)}x{len(ordered)} matrix")
    return TransitionMatrix(state_ids=state_ids, rows=rows)
