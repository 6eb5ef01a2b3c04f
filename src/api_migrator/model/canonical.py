"""Canonical model of a Spring service's HTTP surface.

The extraction stage (source or bytecode analysis) fills these models; every
later stage only reads them. JSON uses camelCase keys, Python attributes are
snake_case, and unknown keys are ignored so analysis files may carry extras.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    """Base for all canonical models: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TypeRef(CanonicalModel):
    """A mention of a Java type, either simple or a collection of an element type."""

    name: str = Field(min_length=1)
    collection: bool = False
    collection_type: str | None = None
    element_type: str | None = None

    @classmethod
    def simple(cls, name: str) -> "TypeRef":
        return cls(name=name)

    @classmethod
    def of_collection(cls, collection_type: str, element_type: str) -> "TypeRef":
        return cls(
            name=f"{collection_type}<{element_type}>",
            collection=True,
            collection_type=collection_type,
            element_type=element_type,
        )

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if isinstance(data, str):
            data = {"name": data}
        if not isinstance(data, dict):
            return data

        name = data.get("name")
        kind = data.get("collectionType", data.get("collection_type"))
        element = data.get("elementType", data.get("element_type"))

        if data.get("collection") or _present(kind):
            kind = kind if _present(kind) else "List"
            element = element if _present(element) else (_generic_argument(name) or name or "Object")
            return {
                "name": name if _present(name) else f"{kind}<{element}>",
                "collection": True,
                "collectionType": kind,
                "elementType": element,
            }

        if not _present(name):
            return {"name": "Object"}
        return {"name": name}


def _present(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _generic_argument(name: Any) -> str | None:
    if not _present(name):
        return None
    start, end = name.find("<"), name.rfind(">")
    if start >= 0 and end > start:
        return name[start + 1:end].strip() or None
    return None


def _plain_number(value: float | int) -> float | int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class ValidationSpec(CanonicalModel):
    """Bean-validation constraints of one field. None means "no constraint"."""

    min_length: int | None = None
    max_length: int | None = None
    min: int | None = None
    max: int | None = None
    gt: float | None = None
    ge: float | None = None
    lt: float | None = None
    le: float | None = None
    not_blank: bool | None = None
    not_null: bool | None = None
    email: bool | None = None
    pattern: str | None = None

    @classmethod
    def empty(cls) -> "ValidationSpec":
        return cls()

    def lower_bound(self) -> tuple[str, float | int] | None:
        """Effective lower bound; exclusive beats inclusive beats @Min."""
        if self.gt is not None:
            return "gt", _plain_number(self.gt)
        if self.ge is not None:
            return "ge", _plain_number(self.ge)
        if self.min is not None:
            return "ge", self.min
        return None

    def upper_bound(self) -> tuple[str, float | int] | None:
        """Effective upper bound; exclusive beats inclusive beats @Max."""
        if self.lt is not None:
            return "lt", _plain_number(self.lt)
        if self.le is not None:
            return "le", _plain_number(self.le)
        if self.max is not None:
            return "le", self.max
        return None

    def constraint_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for a pydantic ``Field(...)`` call."""
        kwargs: dict[str, Any] = {}
        if self.min_length is not None:
            kwargs["min_length"] = self.min_length
        if self.max_length is not None:
            kwargs["max_length"] = self.max_length
        for bound in (self.lower_bound(), self.upper_bound()):
            if bound is not None:
                kwargs[bound[0]] = bound[1]
        if self.pattern and self.pattern.strip():
            kwargs["pattern"] = self.pattern
        return kwargs


class FieldSpec(CanonicalModel):
    """One DTO member. ``validation`` is declared first so ``optional`` can see it."""

    name: str
    type: TypeRef
    validation: ValidationSpec = Field(default_factory=ValidationSpec)
    optional: bool = False
    json_alias: str | None = None

    @field_validator("validation", mode="before")
    @classmethod
    def _default_validation(cls, value: Any) -> Any:
        return ValidationSpec() if value is None else value

    @field_validator("optional")
    @classmethod
    def _required_when_constrained(cls, value: bool, info) -> bool:
        validation = info.data.get("validation")
        if validation is not None and (validation.not_null or validation.not_blank):
            return False
        return value


class DtoSpec(CanonicalModel):
    """A data-transfer type; ``record`` marks Java records."""

    name: str
    package_name: str = ""
    fields: list[FieldSpec] = []
    record: bool = False

    @property
    def id(self) -> str:
        return f"{self.package_name}.{self.name}"


class ParameterSpec(CanonicalModel):
    """A query, path or header parameter bound to an endpoint argument."""

    name: str
    type: TypeRef
    required: bool | None = None
    source: str = "query"
    optional: bool | None = None

    @property
    def required_effective(self) -> bool:
        if self.required is not None:
            return self.required
        if self.optional is not None:
            return not self.optional
        return False


def join_paths(*parts: str | None) -> str:
    """Join controller and method mappings into one absolute route path."""
    segments = [p.strip("/") for p in parts if p and p.strip("/")]
    return "/" + "/".join(segments)


class EndpointSpec(CanonicalModel):
    """One HTTP operation of a controller."""

    id: str
    controller_class: str
    controller_path: str = ""
    method_name: str
    method_path: str = ""
    http_method: str
    path: str
    status_code: int | None = None
    request_body: TypeRef | None = None
    response_body: TypeRef | None = None
    query_params: list[ParameterSpec] = []
    path_params: list[ParameterSpec] = []
    header_params: list[ParameterSpec] = []
    controller_services: list[str] = []

    @model_validator(mode="before")
    @classmethod
    def _derive_identity(cls, data: Any) -> Any:
        """Identity is always controller + method + HTTP verb; a payload ``id`` is not trusted."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        method_key = "httpMethod" if "httpMethod" in data else "http_method"
        controller = data.get("controllerClass", data.get("controller_class"))
        method_name = data.get("methodName", data.get("method_name"))
        http_method = data.get(method_key)
        if isinstance(http_method, str):
            http_method = http_method.upper()
            data[method_key] = http_method
        if _present(controller) and _present(method_name) and _present(http_method):
            data["id"] = cls.endpoint_id(controller, method_name, http_method)
        if "path" not in data:
            data["path"] = join_paths(
                data.get("controllerPath", data.get("controller_path")),
                data.get("methodPath", data.get("method_path")),
            )
        return data

    @staticmethod
    def endpoint_id(controller_class: str, method_name: str, http_method: str) -> str:
        return f"{controller_class}#{method_name}::{http_method.upper()}"

    @classmethod
    def create(
        cls,
        controller_class: str,
        method_name: str,
        http_method: str,
        *,
        controller_path: str = "",
        method_path: str = "",
        status_code: int | None = None,
        request_body: TypeRef | None = None,
        response_body: TypeRef | None = None,
        query_params: list[ParameterSpec] | None = None,
        path_params: list[ParameterSpec] | None = None,
        header_params: list[ParameterSpec] | None = None,
        controller_services: list[str] | None = None,
    ) -> "EndpointSpec":
        """Build a complete endpoint, deriving its id and combined path."""
        method = http_method.upper()
        return cls(
            id=cls.endpoint_id(controller_class, method_name, method),
            controller_class=controller_class,
            controller_path=controller_path,
            method_name=method_name,
            method_path=method_path,
            http_method=method,
            path=join_paths(controller_path, method_path),
            status_code=status_code,
            request_body=request_body,
            response_body=response_body,
            query_params=list(query_params or []),
            path_params=list(path_params or []),
            header_params=list(header_params or []),
            controller_services=list(controller_services or []),
        )

    def all_params(self) -> list[ParameterSpec]:
        return [*self.query_params, *self.path_params, *self.header_params]


class MethodParamSpec(CanonicalModel):
    name: str
    type: TypeRef


class MethodSpec(CanonicalModel):
    name: str
    params: list[MethodParamSpec] = []
    return_type: TypeRef | None = None


class ServiceSpec(CanonicalModel):
    name: str
    package_name: str = ""
    methods: list[MethodSpec] = []

    @property
    def id(self) -> str:
        return f"{self.package_name}.{self.name}"


class RepositorySpec(CanonicalModel):
    name: str
    package_name: str = ""

    @property
    def id(self) -> str:
        return f"{self.package_name}.{self.name}"


class MigrationSpec(CanonicalModel):
    """One migration unit: a module's endpoints, DTOs and collaborators."""

    project_name: str
    module_name: str
    endpoints: list[EndpointSpec] = []
    dtos: list[DtoSpec] = []
    services: list[ServiceSpec] = []
    repositories: list[RepositorySpec] = []
    metadata: dict[str, str] = {}

    def canonical_json(self) -> str:
        """Stable serialisation: sorted keys, two-space indent, no ASCII escaping.

        Used both as the cache key source and as the LLM payload.
        """
        return json.dumps(self.to_json_dict(), indent=2, sort_keys=True, ensure_ascii=False)
