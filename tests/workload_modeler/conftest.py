"""Pytest fixtures for workload_modeler tests."""

import pytest
from pathlib import Path
import tempfile

from workload_modeler.config import WorkloadModelerConfig
from workload_modeler.store import ModelStore
from workload_modeler.mock import MockBehaviorGenerator
from workload_modeler.models import MarkovState, Transition, Variant


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test_models.db"


@pytest.fixture
def config(temp_db_path):
    """Create test configuration."""
    return WorkloadModelerConfig(db_path=temp_db_path)


@pytest.fixture
def store(config):
    """Create test model store."""
    store = ModelStore(config)
    yield store
    store.close()


@pytest.fixture
def mock_generator():
    """Create mock behavior generator with fixed seed."""
    return MockBehaviorGenerator(seed=42)


def make_variant(name, transitions, initial=None, probability=1.0):
    """
    Build a variant from {state_id: {target: probability}}.

    A value of None creates a state without transitions.
    """
    states = []
    for state_id, targets in transitions.items():
        state = MarkovState(state_id)
        if targets is not None:
            state.transitions = [Transition(target, p) for target, p in targets.items()]
        states.append(state)
    return Variant.named(
        name,
        initial_state_id=initial or next(iter(transitions)),
        probability=probability,
        states=states,
    )


@pytest.fixture
def variant_factory():
    return make_variant
