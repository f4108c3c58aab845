"""
Workload Modeler - Turns behavior models into load test workloads.

Behavior models describe how users move through an application as weighted
Markov chains over its endpoints. The modeler restricts them to the
endpoints a version still offers, merges models of several versions, and
projects each behavior onto the matrix mix a load driver executes.

Usage:
    from workload_modeler import (
        WorkloadModelerConfig, ModelStore, ValidityMatcher,
        merge_models, project_variant, WorkloadBuilder
    )

    config = WorkloadModelerConfig(db_path=Path("db/models.db"))
    store = ModelStore(config)

    # Generate mock data for testing
    from workload_modeler.mock import MockBehaviorGenerator
    generator = MockBehaviorGenerator(seed=42)
    store.save_model("shop", "1.0", generator.generate_model())
    store.save_catalog("shop", "1.0", generator.generate_catalog("1.0"))
    store.save_catalog("shop", "2.0", generator.generate_catalog("2.0", drop=["search"]))

    # Restrict a model to the endpoints of a newer version
    catalog = store.get_catalog("shop", "2.0")
    matched = ValidityMatcher(catalog.endpoint_ids()).match_model(store.get_model("shop", "1.0"))

    # Merge and project
    merged = merge_models(matched, other_model, weight=0.3)
    matrix = project_variant(merged.variants[0])

    # Build a workload valid for both versions
    builder = WorkloadBuilder()
    workload = builder.build_intersection_workload(
        [store.get_model("shop", "1.0")],
        [store.get_catalog("shop", "1.0"), catalog],
    )
"""

from .config import WorkloadModelerConfig
from .exceptions import (
    WorkloadModelerError,
    MalformedReferenceError,
    MissingPreconditionError,
    DegenerateChainError,
    StoreError,
    ModelNotFoundError,
)
from .models import (
    INITIAL_STATE,
    Transition,
    MarkovState,
    Variant,
    BehaviorModel,
    parse_variant_name,
    format_variant_name,
    validate_variant,
)
from .contraction import bridge_transitions, contract_state, contract
from .matching import ValidityMatcher, match_model
from .merging import merge_models, merge_all, normalize_weight
from .projection import TransitionCell, TransitionMatrix, project_variant
from .catalog import Parameter, Endpoint, Catalog, intersect_catalogs
from .workload import Operation, WorkloadItem, Workload, WorkloadBuilder, build_workload
from .store import ModelStore
from .api import create_app, app

__version__ = "0.1.0"
__all__ = [
    # Config
    "WorkloadModelerConfig",
    # Exceptions
    "WorkloadModelerError",
    "MalformedReferenceError",
    "MissingPreconditionError",
    "DegenerateChainError",
    "StoreError",
    "ModelNotFoundError",
    # Models
    "INITIAL_STATE",
    "Transition",
    "MarkovState",
    "Variant",
    "BehaviorModel",
    "parse_variant_name",
    "format_variant_name",
    "validate_variant",
    # Transformations
    "bridge_transitions",
    "contract_state",
    "contract",
    "ValidityMatcher",
    "match_model",
    "merge_models",
    "merge_all",
    "normalize_weight",
    "TransitionCell",
    "TransitionMatrix",
    "project_variant",
    # Catalogs and workloads
    "Parameter",
    "Endpoint",
    "Catalog",
    "intersect_catalogs",
    "Operation",
    "WorkloadItem",
    "Workload",
    "WorkloadBuilder",
    "build_workload",
    # Storage
    "ModelStore",
    # API
    "create_app",
    "app",
]
