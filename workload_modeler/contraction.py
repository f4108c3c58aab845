"""
State Contraction - Remove a state from a Markov chain.

Every path that passed through the removed state R is replaced by a bridge
transition that jumps directly to R's successors:

    S --p--> R --q_k--> T_k    becomes    S --p*q_k--> T_k

A self-loop on R is eliminated first by rescaling R's other outgoing
transitions by 1 / (1 - p_loop). Edges into a terminal R lose their mass.
"""

import logging
import math
from typing import Optional

from .exceptions import DegenerateChainError, MalformedReferenceError
from .models import MarkovState, Transition, Variant

logger = logging.getLogger(__name__)


def bridge_transitions(state: MarkovState, variant_name: Optional[str] = None) -> list[Transition]:
    """
    Compute the transitions that replace a path through ``state``.

    The state's own transitions are left untouched; the returned transitions
    are fresh copies without the self-loop and with its mass redistributed
    proportionally over the remaining targets.

    Args:
        state: State that is about to be removed
        variant_name: Name of the owning variant (error context only)

    Returns:
        List of bridge transitions (empty for a terminal state)

    Raises:
        DegenerateChainError: If the self-loop keeps all of the state's mass
    """
    if not state.transitions:
        return []

    loop_probability = sum(
        t.probability for t in state.transitions
        if t.target_state_id == state.state_id
    )
    bridges = [
        t.copy() for t in state.transitions
        if t.target_state_id != state.state_id
    ]

    if loop_probability > 0.0:
        if loop_probability >= 1.0 or math.isclose(loop_probability, 1.0):
            logger.error(f"State '{state.state_id}' of '{variant_name}' has a self-loop of {loop_probability}")
            raise DegenerateChainError(state.state_id, loop_probability, variant=variant_name)

        scale = 1.0 / (1.0 - loop_probability)
        for bridge in bridges:
            bridge.probability *= scale

    return bridges


def redirect_transitions(
    states: list[MarkovState],
    removed_state_id: str,
    bridges: list[Transition],
) -> int:
    """
    Replace every transition into ``removed_state_id`` with bridge transitions.

    If a state already has a transition to a bridge target, the bridged mass
    is added to it; otherwise a new transition carrying the bridge's think
    times is appended.

    Args:
        states: States to rewrite (the removed state itself is skipped)
        removed_state_id: Id of the state being removed
        bridges: Result of bridge_transitions() for the removed state

    Returns:
        Number of transitions that were redirected
    """
    redirected = 0

    for state in states:
        if state.state_id == removed_state_id or not state.transitions:
            continue

        transitions = state.transitions
        i = 0
        while i < len(transitions):
            transition = transitions[i]
            if transition.target_state_id != removed_state_id:
                i += 1
                continue

            # Removing shifts the next element into position i
            del transitions[i]
            redirected += 1

            for bridge in bridges:
                bridged_probability = transition.probability * bridge.probability
                existing = state.get_transition(bridge.target_state_id)
                if existing is not None:
                    existing.probability += bridged_probability
                    continue

                transitions.append(Transition(
                    target_state_id=bridge.target_state_id,
                    probability=bridged_probability,
                    think_time_mean=bridge.think_time_mean,
                    think_time_deviation=bridge.think_time_deviation,
                ))

    return redirected


def contract_state(variant: Variant, state_id: str, keep: bool = False) -> list[Transition]:
    """
    Remove a state from a variant in place, redistributing its mass.

    Args:
        variant: Variant to modify
        state_id: Id of the state to contract
        keep: Keep the state in the variant with its self-loop eliminated
            (used to turn a removed entry state into the synthetic entry)

    Returns:
        The bridge transitions that were used

    Raises:
        MalformedReferenceError: If the state is not part of the variant
        DegenerateChainError: If the state never leaves its self-loop
    """
    state = variant.get_state(state_id)
    if state is None:
        logger.error(f"Cannot contract unknown state '{state_id}' of '{variant.name}'")
        raise MalformedReferenceError(state_id, variant=variant.name)

    bridges = bridge_transitions(state, variant.name)
    redirected = redirect_transitions(variant.states, state_id, bridges)

    if keep:
        state.transitions = [b.copy() for b in bridges] if state.transitions is not None else None
    else:
        variant.states.remove(state)

    logger.debug(
        f"Contracted state '{state_id}' of '{variant.name}': "
        f"{redirected} incoming, {len(bridges)} bridge transitions"
    )
    return bridges


def contract(variant: Variant, state_id: str) -> Variant:
    """
    Return a copy of ``variant`` with ``state_id`` contracted away.

    The given variant is not modified.
    """
    result = variant.copy()
    contract_state(result, state_id)
    return result
