"""Combines per-chunk FastApiSpec fragments."""

import logging
from typing import Iterable

from api_migrator.model.output import FastApiSpec, PydanticModel

logger = logging.getLogger(__name__)


def merge_specs(parts: Iterable[FastApiSpec]) -> FastApiSpec:
    """Models de-duplicated by name (first wins), routes concatenated in order."""
    models: dict[str, PydanticModel] = {}
    routes = []
    for part in parts:
        for model in part.models:
            existing = models.setdefault(model.name, model)
            if existing is not model and existing != model:
                logger.debug("Model %s differs between chunks; keeping the first", model.name)
        routes.extend(part.routes)
    return FastApiSpec(models=list(models.values()), routes=routes)
