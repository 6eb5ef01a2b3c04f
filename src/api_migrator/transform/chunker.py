"""Splits a MigrationSpec into bounded chunks carrying their DTO closure."""

import re
from collections import deque
from typing import Iterable, Iterator

from api_migrator.model.canonical import DtoSpec, EndpointSpec, MigrationSpec, TypeRef
from api_migrator.transform.mapper import simple_name

_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$.]*")


def chunk_spec(spec: MigrationSpec, max_chunk_size: int) -> list[MigrationSpec]:
    """Partition endpoints into windows of at most ``max_chunk_size``.

    A spec already within the ceiling is returned as the single chunk,
    unchanged. Otherwise every chunk is a new MigrationSpec holding its
    window of endpoints plus only the DTOs those endpoints transitively
    reference; services and repositories are not carried.
    """
    if max_chunk_size < 1:
        raise ValueError(f"max_chunk_size must be >= 1, got {max_chunk_size}")

    endpoints = spec.endpoints
    if len(endpoints) <= max_chunk_size:
        return [spec]

    chunks = []
    for start in range(0, len(endpoints), max_chunk_size):
        window = endpoints[start:start + max_chunk_size]
        chunks.append(
            MigrationSpec(
                project_name=spec.project_name,
                module_name=spec.module_name,
                endpoints=window,
                dtos=required_dtos(window, spec.dtos),
                services=[],
                repositories=[],
                metadata=dict(spec.metadata),
            )
        )
    return chunks


def required_dtos(endpoints: Iterable[EndpointSpec], dtos: Iterable[DtoSpec]) -> list[DtoSpec]:
    """DTOs reachable from the endpoints' bodies and parameters, breadth first.

    Returned in first-admitted order. Names matching no DTO (primitives,
    JDK types, anything unknown) are skipped.
    """
    by_name: dict[str, DtoSpec] = {}
    for dto in dtos:
        # On a simple-name clash the first declaration wins, the same rule AnalysisResult applies to ids.
        by_name.setdefault(simple_name(dto.name), dto)

    admitted: dict[str, DtoSpec] = {}
    queue: deque[str] = deque()

    def admit(type_ref: TypeRef | None) -> None:
        for name in _referenced_names(type_ref):
            if name in by_name and name not in admitted:
                admitted[name] = by_name[name]
                queue.append(name)

    for endpoint in endpoints:
        admit(endpoint.request_body)
        admit(endpoint.response_body)
        for param in endpoint.all_params():
            admit(param.type)

    while queue:
        for field in admitted[queue.popleft()].fields:
            admit(field.type)

    return list(admitted.values())


def _referenced_names(type_ref: TypeRef | None) -> Iterator[str]:
    """Simple names a type reference may resolve to: its element, then itself and its generic arguments."""
    if type_ref is None:
        return
    if type_ref.collection and type_ref.element_type:
        yield from _names_in(type_ref.element_type)
    yield from _names_in(type_ref.name)


def _names_in(raw: str) -> Iterator[str]:
    for token in _IDENTIFIER.findall(raw):
        yield simple_name(token)
