"""Tests for the variant merger."""

import logging

import pytest

from workload_modeler.exceptions import MissingPreconditionError
from workload_modeler.merging import merge_all, merge_models, next_merge_index, normalize_weight
from workload_modeler.models import BehaviorModel


def names_and_probabilities(model):
    return [(v.name, v.probability) for v in model.variants]


@pytest.fixture
def single_model(variant_factory):
    def build(name, probability=1.0):
        return BehaviorModel(variants=[
            variant_factory(name, {"a": {"b": 1.0}, "b": None}, probability=probability),
        ])
    return build


class TestNormalizeWeight:
    """Tests for merge weight normalization."""

    @pytest.mark.parametrize("weight", [0.0, 0.33, 1.0])
    def test_in_range(self, weight):
        assert normalize_weight(weight) == weight

    @pytest.mark.parametrize("weight", [None, -0.1, 1.5, float("nan")])
    def test_out_of_range_falls_back(self, weight):
        assert normalize_weight(weight) == 0.5

    def test_custom_default(self):
        assert normalize_weight(2.0, default=0.25) == 0.25


class TestMergeModels:
    """Tests for merge_models."""

    def test_two_unprefixed_models(self, single_model):
        result = merge_models(single_model("behavior"), single_model("behavior"))

        assert names_and_probabilities(result) == [("_1_behavior", 0.5), ("_2_behavior", 0.5)]

    def test_weight_applies_to_second(self, single_model):
        result = merge_models(single_model("a"), single_model("b"), weight=0.2)

        assert [v.probability for v in result.variants] == pytest.approx([0.8, 0.2])

    def test_invalid_weight_uses_default(self, single_model):
        result = merge_models(single_model("a"), single_model("b"), weight=7.0)

        assert [v.probability for v in result.variants] == pytest.approx([0.5, 0.5])

    def test_three_models(self, variant_factory):
        chain = {"a": None}
        first = BehaviorModel(variants=[
            variant_factory("behavior_model0", chain, probability=0.3),
            variant_factory("_1_behavior_model1", chain, probability=0.7),
        ])
        second = BehaviorModel(variants=[variant_factory("_2_behavior_model0", chain, probability=1.0)])
        third = BehaviorModel(variants=[variant_factory("_3_behavior_model0", chain, probability=1.0)])

        merged = merge_models(first, second)

        assert [v.name for v in merged.variants] == [
            "_2_behavior_model0",
            "_1_behavior_model1",
            "_5_behavior_model0",
        ]
        assert [v.probability for v in merged.variants] == pytest.approx([0.15, 0.35, 0.5])

        merged = merge_models(merged, third, weight=0.33)

        assert [v.name for v in merged.variants] == [
            "_2_behavior_model0",
            "_1_behavior_model1",
            "_5_behavior_model0",
            "_10_behavior_model0",
        ]
        assert [v.probability for v in merged.variants] == pytest.approx([0.1005, 0.2345, 0.335, 0.33])

    def test_different_models(self, variant_factory):
        chain = {"a": None}
        first = BehaviorModel(variants=[
            variant_factory("behavior_model0", chain, probability=0.48),
            variant_factory("behavior_model1", chain, probability=0.27),
            variant_factory("behavior_model2", chain, probability=0.25),
        ])
        second = BehaviorModel(variants=[variant_factory("behavior_model1", chain, probability=1.0)])

        merged = merge_models(first, second)

        assert [v.name for v in merged.variants] == [
            "_1_behavior_model0",
            "_1_behavior_model1",
            "_1_behavior_model2",
            "_2_behavior_model1",
        ]
        assert [v.probability for v in merged.variants] == pytest.approx([0.24, 0.135, 0.125, 0.5])

    def test_prefixes_increase_over_sequential_merges(self, single_model):
        merged = single_model("m")
        for _ in range(3):
            merged = merge_models(merged, single_model("m"))

        indices = [v.merge_index for v in merged.variants]
        assert len(set(indices)) == len(indices)
        assert indices[1:] == sorted(indices[1:])

    def test_merge_with_itself(self, single_model):
        model = single_model("behavior", probability=0.75)

        result = merge_models(model, model, weight=0.3)

        assert result is not model
        assert names_and_probabilities(result) == [("behavior", 0.75)]

    def test_inputs_are_not_modified(self, single_model):
        first = single_model("a")
        second = single_model("b")
        first_before = first.to_dict()
        second_before = second.to_dict()

        result = merge_models(first, second)
        result.variants[0].states[0].transitions[0].probability = 0.1
        result.variants[1].states.clear()

        assert first.to_dict() == first_before
        assert second.to_dict() == second_before

    def test_absent_probability_stays_absent(self, variant_factory):
        first = BehaviorModel(variants=[variant_factory("a", {"s": None}, probability=None)])
        second = BehaviorModel(variants=[variant_factory("b", {"s": None}, probability=1.0)])

        result = merge_models(first, second)

        assert result.variants[0].probability is None

    def test_next_merge_index(self, variant_factory):
        model = BehaviorModel(variants=[
            variant_factory("a", {"s": None}),
            variant_factory("_4_b", {"s": None}),
        ])
        assert next_merge_index(model) == 5
        assert next_merge_index(BehaviorModel()) == 1


class TestMergeAll:
    """Tests for merge_all."""

    def test_equal_shares(self, single_model):
        result = merge_all([single_model("a"), single_model("b"), single_model("c")])

        assert result.total_probability == pytest.approx(1.0)
        for variant in result.variants:
            assert variant.probability == pytest.approx(1.0 / 3.0)

    def test_single_model_is_copied(self, single_model):
        model = single_model("a")

        result = merge_all([model])

        assert result is not model
        assert names_and_probabilities(result) == [("a", 1.0)]

    def test_empty_raises(self, caplog):
        with caplog.at_level(logging.ERROR, logger="workload_modeler.merging"):
            with pytest.raises(MissingPreconditionError):
                merge_all([])

        assert "At least one behavior model is required" in caplog.text
