"""Tests for workload building."""

import pytest

from workload_modeler.catalog import Catalog, Endpoint
from workload_modeler.exceptions import MalformedReferenceError, MissingPreconditionError
from workload_modeler.models import INITIAL_STATE, BehaviorModel
from workload_modeler.workload import INITIAL_OPERATION, WorkloadBuilder, build_workload


@pytest.fixture
def catalog():
    return Catalog("1.0", [
        Endpoint("home", method="get", path="/", headers=["Accept: text/html"]),
        Endpoint("search", method="get", path="/search"),
        Endpoint("login", method="post", path="/login"),
    ])


@pytest.fixture
def builder():
    return WorkloadBuilder()


class TestBuildWorkload:
    """Tests for single-version workloads."""

    def test_operations_follow_matrix_order(self, builder, catalog, variant_factory):
        model = BehaviorModel(variants=[variant_factory("browse", {
            "search": None,
            INITIAL_STATE: {"home": 1.0},
            "home": {"search": 1.0},
        }, initial=INITIAL_STATE)])

        workload = builder.build_workload(model, catalog, version="1.0")

        item = workload.items["browse"]
        assert item.mix.state_ids == [INITIAL_STATE, "search", "home"]
        assert [o.operation_id for o in item.operations] == [INITIAL_OPERATION, "search", "home"]

        home = item.operations[2]
        assert home.method == "GET"
        assert home.protocol == "HTTP"
        assert home.path == "/"
        assert home.headers == {"Accept": "text/html"}

    def test_single_variant_has_no_popularity(self, builder, catalog, variant_factory):
        model = BehaviorModel(variants=[variant_factory("browse", {"home": None}, probability=1.0)])

        data = builder.build_workload(model, catalog).to_dict()

        assert "popularity" not in data["workloads"]["browse"]
        assert data["sut_version"] is None

    def test_several_variants_carry_popularity(self, builder, catalog, variant_factory):
        model = BehaviorModel(variants=[
            variant_factory("a", {"home": None}, probability=0.4),
            variant_factory("b", {"search": None}, probability=0.6),
        ])

        workload = builder.build_workload(model, catalog)

        assert workload.items["a"].popularity == 0.4
        assert workload.items["b"].popularity == 0.6

    def test_unknown_endpoint_raises(self, builder, catalog, variant_factory):
        model = BehaviorModel(variants=[variant_factory("v", {"cart": None})])

        with pytest.raises(MalformedReferenceError) as exc_info:
            builder.build_workload(model, catalog)

        assert exc_info.value.reference == "cart"

    def test_empty_model_raises(self, builder, catalog):
        with pytest.raises(MissingPreconditionError):
            builder.build_workload(BehaviorModel(), catalog)

    def test_to_dict(self, catalog, variant_factory):
        model = BehaviorModel(variants=[variant_factory("v", {"home": {"home": 1.0}})])

        data = build_workload(model, catalog, version="1.0").to_dict()

        assert data["sut_version"] == "1.0"
        item = data["workloads"]["v"]
        assert item["driver_type"] == "http"
        assert item["mix"]["states"] == ["home"]
        assert item["operations"] == [{
            "id": "home",
            "method": "GET",
            "protocol": "HTTP",
            "endpoint": "/",
            "headers": {"Accept": "text/html"},
        }]


class TestIntersectionWorkload:
    """Tests for workloads valid for several versions."""

    def test_intersection_model_merges_matched_models(self, builder, catalog, variant_factory):
        first = BehaviorModel(variants=[
            variant_factory("v", {"home": {"cart": 1.0}, "cart": {"search": 1.0}, "search": None}),
        ])
        second = BehaviorModel(variants=[
            variant_factory("v", {"home": {"search": 1.0}, "search": None}),
        ])

        merged = builder.build_intersection_model([first, second], catalog)

        assert [v.name for v in merged.variants] == ["_1_v", "_2_v"]
        assert merged.variants[0].state_ids() == ["home", "search"]
        assert merged.total_probability == pytest.approx(1.0)
        # Inputs are matched on copies
        assert first.variants[0].state_ids() == ["home", "cart", "search"]

    def test_intersection_workload(self, builder, mock_generator):
        model = mock_generator.generate_model()
        catalogs = [
            mock_generator.generate_catalog("1.0"),
            mock_generator.generate_catalog("2.0", drop=["login"]),
        ]

        workload = builder.build_intersection_workload([model], catalogs)

        assert workload.version is None
        assert set(workload.items) == {v.name for v in model.variants}
        for item in workload.items.values():
            assert "login" not in item.mix.state_ids
            assert item.operations[0].operation_id == INITIAL_OPERATION
            assert item.popularity is not None

    def test_requires_catalog(self, builder):
        with pytest.raises(MissingPreconditionError):
            builder.build_intersection_workload([BehaviorModel()], [])

    def test_requires_model(self, builder, catalog):
        with pytest.raises(MissingPreconditionError):
            builder.build_intersection_workload([], [catalog])
