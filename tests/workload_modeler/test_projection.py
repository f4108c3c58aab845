"""Tests for the matrix projector."""

import numpy as np
import pytest

from workload_modeler.exceptions import MalformedReferenceError, MissingPreconditionError
from workload_modeler.models import MarkovState, Transition, Variant
from workload_modeler.projection import TransitionCell, project_variant


class TestProjectVariant:
    """Tests for project_variant."""

    def test_initial_state_moves_to_front(self):
        variant = Variant(
            base_name="behavior",
            initial_state_id="state_2",
            states=[
                MarkovState("state_1"),
                MarkovState("state_2", [
                    Transition("state_2", 0.7),
                    Transition("state_1", 0.3, think_time_mean=1024.512, think_time_deviation=12.34),
                ]),
            ],
        )

        matrix = project_variant(variant)

        assert matrix.state_ids == ["state_2", "state_1"]
        assert matrix.initial_state_id == "state_2"
        np.testing.assert_array_almost_equal(matrix.probabilities(), [[0.7, 0.3], [0.0, 0.0]])

        cell = matrix.cell("state_2", "state_1")
        assert cell.mean == 1024.512
        assert cell.deviation == 12.34
        assert matrix.cell("state_2", "state_2").mean is None

        # The variant keeps its own order
        assert variant.state_ids() == ["state_1", "state_2"]

    def test_four_states(self):
        variant = Variant(
            base_name="behavior",
            initial_state_id="state_1",
            states=[
                MarkovState("state_1", [Transition("state_2", 0.3), Transition("state_3", 0.7)]),
                MarkovState("state_2"),
                MarkovState("state_3", [Transition("state_4", 1.0, think_time_mean=128.0)]),
                MarkovState("state_4", []),
            ],
        )

        matrix = project_variant(variant)

        np.testing.assert_array_almost_equal(matrix.probabilities(), [
            [0.0, 0.3, 0.7, 0.0],
            [0.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 0.0, 0.0],
        ])
        cell = matrix.cell("state_3", "state_4")
        assert cell.mean == 128.0
        assert cell.deviation == 0.0
        assert matrix.size == 4

    def test_row_sums(self, mock_generator):
        variant = mock_generator.generate_variant("buyer")

        matrix = project_variant(variant)

        for state_id, total in zip(matrix.state_ids, matrix.row_sums()):
            state = variant.get_state(state_id)
            expected = 1.0 if state.has_transitions else 0.0
            assert total == pytest.approx(expected)

    def test_to_dict(self):
        variant = Variant(
            base_name="b",
            initial_state_id="a",
            states=[MarkovState("a", [Transition("a", 1.0, think_time_mean=5.0, think_time_deviation=1.0)])],
        )

        data = project_variant(variant).to_dict()

        assert data == {
            "states": ["a"],
            "matrix": [[{"probability": 1.0, "mean": 5.0, "deviation": 1.0}]],
        }

    def test_missing_states_raises(self):
        with pytest.raises(MissingPreconditionError):
            project_variant(Variant(base_name="b", initial_state_id="a"))

    def test_missing_initial_state_raises(self):
        variant = Variant(base_name="b", states=[MarkovState("a")])
        with pytest.raises(MissingPreconditionError) as exc_info:
            project_variant(variant)
        assert exc_info.value.variant == "b"

    def test_unknown_initial_state_raises(self):
        variant = Variant(base_name="b", initial_state_id="zzz", states=[MarkovState("a")])
        with pytest.raises(MalformedReferenceError):
            project_variant(variant)


class TestTransitionCell:
    """Tests for TransitionCell serialization."""

    def test_plain_cell(self):
        assert TransitionCell().to_dict() == {"probability": 0.0}

    def test_cell_with_think_time(self):
        cell = TransitionCell(probability=0.5, mean=10.0, deviation=2.0)
        assert cell.to_dict() == {"probability": 0.5, "mean": 10.0, "deviation": 2.0}
