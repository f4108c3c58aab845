"""
Data models for the Workload Modeler.

A behavior model is an ordered list of variants. Each variant is a named,
weighted Markov chain of user actions whose states are endpoint ids of the
system under test.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

# Canonical id of the synthetic entry state
INITIAL_STATE = "INITIAL"

# Merge prefix rendered in front of a variant name: "_<N>_<base name>"
VARIANT_PREFIX = re.compile(r"^_([0-9]+)_")


def parse_variant_name(name: str) -> tuple[str, Optional[int]]:
    """
    Split a rendered variant name into base name and merge index.

    Args:
        name: Variant name, possibly carrying a "_<N>_" prefix

    Returns:
        Tuple of (base_name, merge_index); merge_index is None if unprefixed
    """
    match = VARIANT_PREFIX.match(name)
    if match is None:
        return name, None
    return name[match.end():], int(match.group(1))


def format_variant_name(base_name: str, merge_index: Optional[int]) -> str:
    """Render a variant name from its structured parts."""
    if merge_index is None:
        return base_name
    return f"_{merge_index}_{base_name}"


@dataclass
class Transition:
    """A weighted edge from one Markov state to another."""

    target_state_id: str
    probability: float = 0.0

    # Think time spent before following this transition
    think_time_mean: Optional[float] = None
    think_time_deviation: Optional[float] = None

    def copy(self) -> "Transition":
        return Transition(
            target_state_id=self.target_state_id,
            probability=self.probability,
            think_time_mean=self.think_time_mean,
            think_time_deviation=self.think_time_deviation,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "targetState": self.target_state_id,
            "probability": self.probability,
        }
        if self.think_time_mean is not None:
            data["think-time-mean"] = self.think_time_mean
        if self.think_time_deviation is not None:
            data["think-time-deviation"] = self.think_time_deviation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transition":
        """Create from dictionary."""
        probability = data.get("probability")
        return cls(
            target_state_id=data["targetState"],
            probability=float(probability) if probability is not None else 0.0,
            think_time_mean=data.get("think-time-mean"),
            think_time_deviation=data.get("think-time-deviation"),
        )


@dataclass
class MarkovState:
    """
    A state of a behavior variant.

    ``transitions`` is None when the state never had outgoing transitions and
    an empty list when they were all removed. Both mean the state is terminal.
    """

    state_id: str
    transitions: Optional[list[Transition]] = None

    @property
    def has_transitions(self) -> bool:
        return bool(self.transitions)

    @property
    def outgoing_probability(self) -> float:
        """Sum of the probabilities of all outgoing transitions."""
        if not self.transitions:
            return 0.0
        return sum(t.probability for t in self.transitions)

    def get_transition(self, target_state_id: str) -> Optional[Transition]:
        """Return the first transition to the given target, if any."""
        for transition in self.transitions or []:
            if transition.target_state_id == target_state_id:
                return transition
        return None

    def add_transition(
        self,
        target_state_id: str,
        probability: float,
        think_time_mean: Optional[float] = None,
        think_time_deviation: Optional[float] = None,
    ) -> Transition:
        """Append a new transition and return it."""
        transition = Transition(target_state_id, probability, think_time_mean, think_time_deviation)
        if self.transitions is None:
            self.transitions = []
        self.transitions.append(transition)
        return transition

    def copy(self) -> "MarkovState":
        transitions = None
        if self.transitions is not None:
            transitions = [t.copy() for t in self.transitions]
        return MarkovState(state_id=self.state_id, transitions=transitions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {"id": self.state_id}
        if self.transitions is not None:
            data["transitions"] = [t.to_dict() for t in self.transitions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarkovState":
        """Create from dictionary."""
        transitions = data.get("transitions")
        return cls(
            state_id=data["id"],
            transitions=[Transition.from_dict(t) for t in transitions] if transitions is not None else None,
        )


@dataclass
class Variant:
    """
    One named, weighted Markov chain describing one style of user behavior.

    The merge prefix is kept as structured data (``merge_index``) next to the
    ``base_name``; ``name`` renders the combined form used on the wire.
    """

    base_name: str
    initial_state_id: Optional[str] = None
    probability: Optional[float] = None
    states: Optional[list[MarkovState]] = None
    merge_index: Optional[int] = None

    @property
    def name(self) -> str:
        """Rendered variant name including a merge prefix, if any."""
        return format_variant_name(self.base_name, self.merge_index)

    @classmethod
    def named(
        cls,
        name: str,
        initial_state_id: Optional[str] = None,
        probability: Optional[float] = None,
        states: Optional[list[MarkovState]] = None,
    ) -> "Variant":
        """Create a variant from a rendered name, parsing any merge prefix."""
        base_name, merge_index = parse_variant_name(name)
        return cls(
            base_name=base_name,
            initial_state_id=initial_state_id,
            probability=probability,
            states=states,
            merge_index=merge_index,
        )

    def get_state(self, state_id: str) -> Optional[MarkovState]:
        """Return the state with the given id, if present."""
        for state in self.states or []:
            if state.state_id == state_id:
                return state
        return None

    def state_ids(self) -> list[str]:
        return [s.state_id for s in self.states or []]

    def copy(self) -> "Variant":
        """Deep copy: no state or transition is shared with this variant."""
        states = None
        if self.states is not None:
            states = [s.copy() for s in self.states]
        return Variant(
            base_name=self.base_name,
            initial_state_id=self.initial_state_id,
            probability=self.probability,
            states=states,
            merge_index=self.merge_index,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {"name": self.name}
        if self.initial_state_id is not None:
            data["initialState"] = self.initial_state_id
        if self.probability is not None:
            data["probability"] = self.probability
        if self.states is not None:
            data["markov-states"] = [s.to_dict() for s in self.states]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Variant":
        """Create from dictionary."""
        states = data.get("markov-states")
        probability = data.get("probability")
        return cls.named(
            name=data.get("name", ""),
            initial_state_id=data.get("initialState"),
            probability=float(probability) if probability is not None else None,
            states=[MarkovState.from_dict(s) for s in states] if states is not None else None,
        )


@dataclass
class BehaviorModel:
    """An ordered collection of behavior variants."""

    variants: list[Variant] = field(default_factory=list)

    @property
    def variant_count(self) -> int:
        return len(self.variants)

    @property
    def total_probability(self) -> float:
        """Sum of the variant probabilities (absent probabilities count as 0)."""
        return sum(v.probability or 0.0 for v in self.variants)

    def get_variant(self, name: str) -> Optional[Variant]:
        """Return the variant with the given rendered name, if present."""
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def copy(self) -> "BehaviorModel":
        return BehaviorModel(variants=[v.copy() for v in self.variants])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"behaviors": [v.to_dict() for v in self.variants]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BehaviorModel":
        """Create from dictionary."""
        return cls(variants=[Variant.from_dict(v) for v in data.get("behaviors") or []])


def validate_variant(variant: Variant, tolerance: float = 1e-6) -> list[str]:
    """
    Check a variant for problems that make it a malformed Markov chain.

    Nothing is raised here; callers decide which issues are fatal.

    Args:
        variant: Variant to check
        tolerance: Allowed deviation of an outgoing probability sum from 1

    Returns:
        List of human-readable issues (empty if the chain is well formed)
    """
    issues = []
    ids = variant.state_ids()
    known = set(ids)

    if len(known) != len(ids):
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        issues.append(f"Duplicate state ids: {', '.join(duplicates)}")

    if variant.initial_state_id is not None and variant.initial_state_id not in known:
        issues.append(f"Initial state '{variant.initial_state_id}' is not a state of the variant")

    for state in variant.states or []:
        if not state.transitions:
            continue

        for transition in state.transitions:
            if transition.target_state_id not in known:
                issues.append(
                    f"Transition {state.state_id} -> {transition.target_state_id} targets an unknown state"
                )
            if transition.target_state_id == state.state_id and transition.probability >= 1.0 - tolerance:
                issues.append(f"State '{state.state_id}' never leaves its self-loop")

        total = state.outgoing_probability
        if not math.isclose(total, 1.0, abs_tol=tolerance):
            issues.append(f"Outgoing probability of '{state.state_id}' sums to {total:.6f}")

    return issues
