"""
Catalog - the callable endpoints of one version of the system under test.

Behavior states are endpoint ids; the catalog decides which of them are valid.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class Parameter:
    """A parameter of an HTTP endpoint."""

    parameter_id: str
    name: str
    parameter_type: str = "REQ_PARAM"  # REQ_PARAM, URL_PART, FORM, BODY

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.parameter_id, "name": self.name, "parameter-type": self.parameter_type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Parameter":
        return cls(
            parameter_id=data["id"],
            name=data.get("name", ""),
            parameter_type=data.get("parameter-type", "REQ_PARAM"),
        )


@dataclass
class Endpoint:
    """An HTTP endpoint that a behavior state refers to by id."""

    endpoint_id: str
    method: str = "GET"
    path: str = "/"
    protocol: str = "http"
    headers: list[str] = field(default_factory=list)  # "Name: value"
    parameters: list[Parameter] = field(default_factory=list)

    def header_map(self) -> dict[str, str]:
        """Headers split into name and value."""
        headers = {}
        for header in self.headers:
            name, _, value = header.partition(":")
            headers[name.strip()] = value.strip()
        return headers

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.endpoint_id,
            "method": self.method,
            "path": self.path,
            "protocol": self.protocol,
            "headers": list(self.headers),
            "parameters": [p.to_dict() for p in self.parameters],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Endpoint":
        return cls(
            endpoint_id=data["id"],
            method=data.get("method", "GET"),
            path=data.get("path", "/"),
            protocol=data.get("protocol", "http"),
            headers=list(data.get("headers") or []),
            parameters=[Parameter.from_dict(p) for p in data.get("parameters") or []],
        )


@dataclass
class Catalog:
    """All endpoints of one version of an application."""

    version: Optional[str] = None
    endpoints: list[Endpoint] = field(default_factory=list)

    def endpoint_ids(self) -> set[str]:
        return {e.endpoint_id for e in self.endpoints}

    def get_endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        for endpoint in self.endpoints:
            if endpoint.endpoint_id == endpoint_id:
                return endpoint
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "endpoints": [e.to_dict() for e in self.endpoints],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Catalog":
        return cls(
            version=data.get("version"),
            endpoints=[Endpoint.from_dict(e) for e in data.get("endpoints") or []],
        )


def intersect_catalogs(first: Catalog, second: Catalog) -> Catalog:
    """
    Endpoints that exist unchanged in both catalogs.

    An endpoint of ``first`` survives only if ``second`` has an equal endpoint
    under the same id. Added, removed and changed endpoints (including
    changed parameters) are dropped. The result carries no version.

    Args:
        first: Catalog whose endpoint order is kept
        second: Catalog to compare against

    Returns:
        New Catalog with the common endpoints
    """
    endpoints = []
    for endpoint in first.endpoints:
        other = second.get_endpoint(endpoint.endpoint_id)
        if other is None or other != endpoint:
            logger.debug(f"Removed endpoint with id '{endpoint.endpoint_id}'")
            continue
        endpoints.append(Endpoint.from_dict(endpoint.to_dict()))

    for endpoint in endpoints:
        logger.debug(f"Intersection contains {endpoint.endpoint_id}")

    return Catalog(version=None, endpoints=endpoints)
