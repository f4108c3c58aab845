"""
Workload Builder - Turn behavior models into executable workload specifications.

Pipeline for several versions of a system:

    catalogs  --intersect-->  common catalog
    models    --match each against common catalog--> matched models
              --merge_all-->  intersection model
              --project each variant + map states to operations--> Workload
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .catalog import Catalog, intersect_catalogs
from .exceptions import MalformedReferenceError, MissingPreconditionError
from .matching import ValidityMatcher
from .merging import merge_all
from .models import INITIAL_STATE, BehaviorModel, Variant
from .projection import TransitionMatrix, project_variant

logger = logging.getLogger(__name__)

INITIAL_OPERATION = "INITIAL_STATE"


@dataclass
class Operation:
    """A request issued when the load driver enters a state."""

    operation_id: str
    method: Optional[str] = None
    protocol: Optional[str] = None
    path: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.operation_id}
        if self.method is not None:
            data["method"] = self.method
            data["protocol"] = self.protocol
            data["endpoint"] = self.path
        if self.headers:
            data["headers"] = dict(self.headers)
        return data


@dataclass
class WorkloadItem:
    """The workload generated from one behavior variant."""

    name: str
    mix: TransitionMatrix
    operations: list[Operation] = field(default_factory=list)
    popularity: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "driver_type": "http",
            "mix": self.mix.to_dict(),
            "operations": [o.to_dict() for o in self.operations],
        }
        if self.popularity is not None:
            data["popularity"] = self.popularity
        return data


@dataclass
class Workload:
    """Workload items keyed by variant name."""

    items: dict[str, WorkloadItem] = field(default_factory=dict)
    version: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sut_version": self.version,
            "workloads": {name: item.to_dict() for name, item in self.items.items()},
        }


class WorkloadBuilder:
    """
    Builds workloads from behavior models and catalogs.

    Usage:
        builder = WorkloadBuilder()
        workload = builder.build_intersection_workload(models, catalogs)
    """

    def __init__(
        self,
        initial_state: str = INITIAL_STATE,
        initial_operation: str = INITIAL_OPERATION,
    ):
        """
        Initialize the builder.

        Args:
            initial_state: Id of the synthetic entry state in behavior models
            initial_operation: Operation id emitted for the entry state
        """
        self.initial_state = initial_state
        self.initial_operation = initial_operation

    def build_intersection_model(
        self,
        models: Sequence[BehaviorModel],
        catalog: Catalog,
    ) -> BehaviorModel:
        """
        Match every model against a catalog and merge the results.

        Args:
            models: Behavior models, one per version (at least one)
            catalog: Catalog holding the valid states

        Returns:
            New merged BehaviorModel; the inputs are not modified

        Raises:
            MissingPreconditionError: If no model is given
        """
        if not models:
            logger.error("At least one behavior model is required")
            raise MissingPreconditionError("At least one behavior model is required")

        matcher = ValidityMatcher(catalog.endpoint_ids(), self.initial_state)
        matched = [matcher.match_model(model) for model in models]
        return merge_all(matched)

    def build_operations(self, matrix: TransitionMatrix, catalog: Catalog, variant_name: str) -> list[Operation]:
        """Map every state of a projected variant onto an operation, in matrix order."""
        operations = []
        for state_id in matrix.state_ids:
            if state_id == self.initial_state:
                operations.append(Operation(operation_id=self.initial_operation))
                continue

            endpoint = catalog.get_endpoint(state_id)
            if endpoint is None:
                logger.error(f"Endpoint '{state_id}' of behavior '{variant_name}' not found in the catalog")
                raise MalformedReferenceError(
                    state_id,
                    variant=variant_name,
                    reason=f"Endpoint '{state_id}' from behavior '{variant_name}' not found in the catalog",
                )

            operations.append(Operation(
                operation_id=state_id,
                method=endpoint.method.upper(),
                protocol=endpoint.protocol.upper(),
                path=endpoint.path,
                headers=endpoint.header_map(),
            ))
        return operations

    def build_item(self, variant: Variant, catalog: Catalog, single: bool = False) -> WorkloadItem:
        """Project one variant and attach its operations."""
        logger.debug(f"Parse behavior '{variant.name}'")
        matrix = project_variant(variant)
        return WorkloadItem(
            name=variant.name,
            mix=matrix,
            operations=self.build_operations(matrix, catalog, variant.name),
            popularity=None if single else variant.probability,
        )

    def build_workload(
        self,
        model: BehaviorModel,
        catalog: Catalog,
        version: Optional[str] = None,
    ) -> Workload:
        """
        Build the workload for one behavior model.

        Args:
            model: Behavior model (typically already matched against ``catalog``)
            catalog: Catalog resolving states to endpoints
            version: Version of the system under test, if any

        Returns:
            Workload with one item per variant

        Raises:
            MissingPreconditionError: If the model has no variants
        """
        if not model.variants:
            logger.error("No behaviors found in the behavior model")
            raise MissingPreconditionError("No behaviors found in the behavior model")

        single = model.variant_count == 1
        items = {}
        for variant in model.variants:
            items[variant.name] = self.build_item(variant, catalog, single=single)

        logger.info(f"Built workload with {len(items)} items (version: {version})")
        return Workload(items=items, version=version)

    def build_intersection_workload(
        self,
        models: Sequence[BehaviorModel],
        catalogs: Sequence[Catalog],
    ) -> Workload:
        """
        Build one workload valid for every given version.

        Args:
            models: Behavior models of the versions that have one
            catalogs: Catalogs of all versions (at least one)

        Returns:
            Workload without a version
        """
        if not catalogs:
            logger.error("At least one catalog is required")
            raise MissingPreconditionError("At least one catalog is required")

        catalog = catalogs[0]
        for other in catalogs[1:]:
            catalog = intersect_catalogs(catalog, other)

        model = self.build_intersection_model(models, catalog)
        return self.build_workload(model, catalog, version=None)


def build_workload(model: BehaviorModel, catalog: Catalog, version: Optional[str] = None) -> Workload:
    """Convenience function building a workload with default markers."""
    return WorkloadBuilder().build_workload(model, catalog, version)
