"""
Validity Matcher - Restrict behavior models to a catalog of valid states.

States whose ids are not endpoints of the current catalog are contracted
away one by one. When the entry state itself is invalid it is kept as a
synthetic "INITIAL" state that fans out to its former successors.
"""

import logging
from typing import Iterable

from .contraction import contract_state
from .exceptions import MalformedReferenceError, MissingPreconditionError
from .models import INITIAL_STATE, BehaviorModel, Variant

logger = logging.getLogger(__name__)


class ValidityMatcher:
    """
    Matches behavior variants against a fixed set of valid state ids.

    Usage:
        matcher = ValidityMatcher(catalog.endpoint_ids())
        matched = matcher.match_model(model)
    """

    def __init__(self, valid_ids: Iterable[str], initial_state: str = INITIAL_STATE):
        """
        Initialize the matcher.

        Args:
            valid_ids: State ids that may remain in a matched variant
            initial_state: Id of the synthetic entry state
        """
        self.valid_ids = frozenset(valid_ids)
        self.initial_state = initial_state

    def is_valid(self, state_id: str) -> bool:
        return state_id == self.initial_state or state_id in self.valid_ids

    def invalid_state_ids(self, variant: Variant) -> list[str]:
        """Ids of the states that matching would remove, in state order."""
        return [s for s in variant.state_ids() if not self.is_valid(s)]

    def match_variant(self, variant: Variant) -> Variant:
        """
        Remove all invalid states from a variant in place.

        Args:
            variant: Variant to match

        Returns:
            The same variant, now holding only valid states and possibly INITIAL

        Raises:
            MalformedReferenceError: If the entry state or a transition target
                does not resolve to a state of the variant, or a state
                with the synthetic entry id already exists
            MissingPreconditionError: If the variant has no states list
            DegenerateChainError: If a removed state never leaves its self-loop
        """
        if variant.states is None:
            logger.error(f"Behavior '{variant.name}' does not contain any markov states")
            raise MissingPreconditionError(
                f"Behavior '{variant.name}' does not contain any markov states",
                variant=variant.name,
            )

        self._check_references(variant)

        initial_id = variant.initial_state_id
        entry = variant.get_state(initial_id) if initial_id is not None else None
        if initial_id is not None and entry is None:
            logger.error(f"Initial state '{initial_id}' is not available in the behavior '{variant.name}'")
            raise MalformedReferenceError(
                initial_id,
                variant=variant.name,
                reason=f"Initial state '{initial_id}' is not available in the behavior '{variant.name}'",
            )

        if initial_id is not None and not self.is_valid(initial_id):
            logger.debug(f"Initial state '{initial_id}' was removed from the behavior '{variant.name}'")

            if variant.get_state(self.initial_state) is not None:
                logger.error(f"Behavior '{variant.name}' already contains a state '{self.initial_state}'")
                raise MalformedReferenceError(
                    self.initial_state,
                    variant=variant.name,
                    reason=(
                        f"Cannot rename initial state '{initial_id}' of '{variant.name}': "
                        f"a state '{self.initial_state}' already exists"
                    ),
                )

            if not entry.has_transitions:
                logger.warning(
                    f"Initial state '{initial_id}' of '{variant.name}' is not in the catalog "
                    f"and has no transitions; the behavior has no entry point"
                )
                variant.initial_state_id = None
                return variant

            contract_state(variant, initial_id, keep=True)
            entry.state_id = self.initial_state
            variant.initial_state_id = self.initial_state
            logger.debug(f"Former initial state '{initial_id}' was renamed to '{self.initial_state}'")

        # Contraction only rewrites transitions, so this list stays accurate
        for state_id in self.invalid_state_ids(variant):
            logger.debug(f"Removed Markov state '{state_id}' from '{variant.name}'")
            contract_state(variant, state_id)

        return variant

    def match_model(self, model: BehaviorModel) -> BehaviorModel:
        """
        Match every variant of a model.

        Works on a deep copy; the given model is left unmodified even if
        matching fails part-way.
        """
        result = model.copy()
        for variant in result.variants:
            self.match_variant(variant)
        return result

    def _check_references(self, variant: Variant) -> None:
        """Ensure every transition target is a state of the variant."""
        known = set(variant.state_ids())
        for state in variant.states or []:
            for transition in state.transitions or []:
                if transition.target_state_id not in known:
                    logger.error(
                        f"Transition {state.state_id} -> {transition.target_state_id} "
                        f"of '{variant.name}' targets an unknown state"
                    )
                    raise MalformedReferenceError(
                        transition.target_state_id,
                        variant=variant.name,
                        reason=(
                            f"Transition from '{state.state_id}' targets unknown state "
                            f"'{transition.target_state_id}' in variant '{variant.name}'"
                        ),
                    )


def match_model(
    model: BehaviorModel,
    valid_ids: Iterable[str],
    initial_state: str = INITIAL_STATE,
) -> BehaviorModel:
    """
    Convenience function returning a matched copy of ``model``.

    Args:
        model: Behavior model to match
        valid_ids: Valid state ids (e.g. the endpoint ids of a catalog)
        initial_state: Id of the synthetic entry state

    Returns:
        New BehaviorModel containing only valid states
    """
    return ValidityMatcher(valid_ids, initial_state).match_model(model)
