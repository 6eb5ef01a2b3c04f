"""Rule-based Spring -> FastAPI mapping.

Used on its own when the LLM path is disabled, and as the per-chunk fallback
of the LLM path. Every function here is total: unknown Java types pass
through under their simple name.
"""

import re

from api_migrator.model.canonical import DtoSpec, EndpointSpec, FieldSpec, MigrationSpec, TypeRef
from api_migrator.model.output import FastApiRoute, FastApiSpec, PydanticField, PydanticModel

JAVA_TYPE_MAP = {
    "String": "str",
    "char": "str",
    "Character": "str",
    "CharSequence": "str",
    "int": "int",
    "Integer": "int",
    "long": "int",
    "Long": "int",
    "short": "int",
    "Short": "int",
    "byte": "int",
    "Byte": "int",
    "BigInteger": "int",
    "double": "float",
    "Double": "float",
    "float": "float",
    "Float": "float",
    "boolean": "bool",
    "Boolean": "bool",
    "BigDecimal": "Decimal",
    "Instant": "datetime",
    "LocalDateTime": "datetime",
    "OffsetDateTime": "datetime",
    "ZonedDateTime": "datetime",
    "Date": "datetime",
    "LocalDate": "date",
    "LocalTime": "time",
    "UUID": "UUID",
    "Object": "Any",
    "Map": "dict",
    "HashMap": "dict",
    "void": "None",
    "Void": "None",
}


def simple_name(type_name: str | None) -> str | None:
    """``java.util.List<com.x.Foo>`` -> ``List``; ``com.x.Foo`` -> ``Foo``."""
    if type_name is None:
        return None
    raw = type_name.split("<", 1)[0].strip()
    return raw.rsplit(".", 1)[-1]


def generic_element(type_name: str | None) -> str | None:
    """Text between the outermost angle brackets, if any."""
    if not type_name:
        return None
    start = type_name.find("<")
    end = type_name.rfind(">")
    if start >= 0 and end > start:
        return type_name[start + 1:end].strip() or None
    return None


def map_java_name(java_name: str | None) -> str:
    name = simple_name(java_name)
    if not name:
        return "Any"
    return JAVA_TYPE_MAP.get(name, name)


def map_type(type_ref: TypeRef | None) -> str:
    """Python annotation for a canonical type reference."""
    if type_ref is None:
        return "Any"
    if type_ref.collection:
        return f"List[{map_java_name(type_ref.element_type)}]"
    return map_java_name(type_ref.name)


def to_snake(name: str) -> str:
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
    return re.sub(r"_+", "_", snake)


class DeterministicTransformer:
    """Maps a MigrationSpec one-to-one onto a FastApiSpec."""

    def transform(self, spec: MigrationSpec) -> FastApiSpec:
        known = {simple_name(dto.name) for dto in spec.dtos}
        models = [self._map_dto(dto) for dto in spec.dtos]
        routes = [self._map_endpoint(endpoint, known) for endpoint in spec.endpoints]
        return FastApiSpec(models=models, routes=routes)

    def _map_dto(self, dto: DtoSpec) -> PydanticModel:
        return PydanticModel(name=simple_name(dto.name), fields=[self._map_field(f) for f in dto.fields])

    def _map_field(self, field: FieldSpec) -> PydanticField:
        type_name = "EmailStr" if field.validation.email else map_type(field.type)
        return PydanticField(
            name=field.name,
            type=type_name,
            optional=field.optional,
            collection=field.type.collection,
            alias=field.json_alias or None,
            constraints=field.validation.constraint_kwargs(),
        )

    def _map_endpoint(self, endpoint: EndpointSpec, known: set[str]) -> FastApiRoute:
        return FastApiRoute(
            path=endpoint.path,
            method=endpoint.http_method,
            function_name=to_snake(endpoint.method_name),
            request_model=self._model_reference(endpoint.request_body, known),
            response_model=self._model_reference(endpoint.response_body, known),
            status_code=endpoint.status_code,
            query_params=list(endpoint.query_params),
            path_params=list(endpoint.path_params),
            header_params=list(endpoint.header_params),
        )

    def _model_reference(self, type_ref: TypeRef | None, known: set[str]) -> str | None:
        """DTO name when the type (or its element) is a DTO of this spec, else the mapped type."""
        if type_ref is None:
            return None
        if type_ref.collection:
            element = simple_name(type_ref.element_type)
            if element in known:
                return f"List[{element}]"
            return map_type(type_ref)
        name = simple_name(type_ref.name)
        if name in known:
            return name
        return map_type(type_ref)
