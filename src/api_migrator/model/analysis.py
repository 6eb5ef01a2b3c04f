"""Accumulates extraction results with first-writer-wins de-duplication."""

import logging
from typing import Any

from pydantic import ValidationError

from api_migrator.errors import InputError
from api_migrator.model.canonical import (
    DtoSpec,
    EndpointSpec,
    MigrationSpec,
    RepositorySpec,
    ServiceSpec,
)

logger = logging.getLogger(__name__)


class AnalysisResult:
    """Ordered collection of everything discovered for one module.

    Each kind is keyed by its id. The first insertion of an id wins; later
    insertions with the same id are ignored, not merged field by field.
    """

    def __init__(self):
        self._endpoints: dict[str, EndpointSpec] = {}
        self._dtos: dict[str, DtoSpec] = {}
        self._services: dict[str, ServiceSpec] = {}
        self._repositories: dict[str, RepositorySpec] = {}

    @property
    def endpoints(self) -> list[EndpointSpec]:
        return list(self._endpoints.values())

    @property
    def dtos(self) -> list[DtoSpec]:
        return list(self._dtos.values())

    @property
    def services(self) -> list[ServiceSpec]:
        return list(self._services.values())

    @property
    def repositories(self) -> list[RepositorySpec]:
        return list(self._repositories.values())

    def add_endpoint(self, endpoint: EndpointSpec) -> bool:
        """Add an endpoint. Returns False if its id was already present."""
        return _put_first(self._endpoints, endpoint.id, endpoint)

    def add_dto(self, dto: DtoSpec) -> bool:
        return _put_first(self._dtos, dto.id, dto)

    def add_service(self, service: ServiceSpec) -> bool:
        return _put_first(self._services, service.id, service)

    def add_repository(self, repository: RepositorySpec) -> bool:
        return _put_first(self._repositories, repository.id, repository)

    def merge(self, other: "AnalysisResult") -> None:
        """Fold another result in; entries already present here are kept."""
        for endpoint in other.endpoints:
            self.add_endpoint(endpoint)
        for dto in other.dtos:
            self.add_dto(dto)
        for service in other.services:
            self.add_service(service)
        for repository in other.repositories:
            self.add_repository(repository)

    def to_migration_spec(
        self, project_name: str, module_name: str, metadata: dict[str, str] | None = None
    ) -> MigrationSpec:
        return MigrationSpec(
            project_name=project_name,
            module_name=module_name,
            endpoints=self.endpoints,
            dtos=self.dtos,
            services=self.services,
            repositories=self.repositories,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoints": [e.to_json_dict() for e in self.endpoints],
            "dtos": [d.to_json_dict() for d in self.dtos],
            "services": [s.to_json_dict() for s in self.services],
            "repositories": [r.to_json_dict() for r in self.repositories],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        """Rebuild a result from an analysis payload, dropping duplicate ids."""
        result = cls()
        try:
            for item in data.get("endpoints") or []:
                if not result.add_endpoint(EndpointSpec.model_validate(item)):
                    logger.debug("Ignoring duplicate endpoint %s", item.get("id"))
            for item in data.get("dtos") or []:
                result.add_dto(DtoSpec.model_validate(item))
            for item in data.get("services") or []:
                result.add_service(ServiceSpec.model_validate(item))
            for item in data.get("repositories") or []:
                result.add_repository(RepositorySpec.model_validate(item))
        except ValidationError as e:
            raise InputError(f"Invalid analysis payload: {e}") from e
        return result


def _put_first(entries: dict, key: str, value) -> bool:
    if key in entries:
        return False
    entries[key] = value
    return True
