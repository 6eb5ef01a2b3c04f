"""Content-addressed cache of LLM transform results.

One file per chunk, ``<sha256 of the chunk's canonical JSON>.json``. The same
chunk content always yields the same key, so an unchanged module re-runs
without any LLM call. Storage problems degrade to cache misses; they never
fail the migration.
"""

import contextlib
import hashlib
import logging
import os
import tempfile
from pathlib import Path

from api_migrator.errors import MigratorError
from api_migrator.model.canonical import MigrationSpec
from api_migrator.model.output import FastApiSpec, parse_fastapi_spec

logger = logging.getLogger(__name__)


# Metadata that describes where the analysis was read from, not what it contains.
LOCATION_METADATA_KEYS = frozenset({"root"})


def content_key(chunk: MigrationSpec) -> str:
    """SHA-256 of the chunk's canonical JSON, ignoring checkout-specific metadata."""
    metadata = {k: v for k, v in chunk.metadata.items() if k not in LOCATION_METADATA_KEYS}
    if metadata != chunk.metadata:
        chunk = chunk.model_copy(update={"metadata": metadata})
    return hashlib.sha256(chunk.canonical_json().encode("utf-8")).hexdigest()


class TransformCache:
    """Filesystem-backed mapping from chunk digest to FastApiSpec fragment."""

    def __init__(self, cache_dir: Path | None):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.enabled = self.cache_dir is not None
        if self.enabled:
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning("Could not create cache dir %s, caching disabled: %s", self.cache_dir, e)
                self.enabled = False

    def key_for(self, chunk: MigrationSpec) -> str:
        return content_key(chunk)

    def path_for(self, chunk: MigrationSpec) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / f"{self.key_for(chunk)}.json"

    def lookup(self, chunk: MigrationSpec) -> FastApiSpec | None:
        if not self.enabled:
            return None
        path = self.path_for(chunk)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read cache entry %s: %s", path.name, e)
            return None
        try:
            return parse_fastapi_spec(text)
        except MigratorError as e:
            logger.warning("Ignoring corrupt cache entry %s: %s", path.name, e)
            return None

    def store(self, chunk: MigrationSpec, result: FastApiSpec) -> None:
        if not self.enabled:
            return
        path = self.path_for(chunk)
        tmp_name = None
        try:
            # Write to a sibling temp file and rename so readers never see a partial entry.
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(result.to_pretty_json())
            os.replace(tmp_name, path)
        except OSError as e:
            logger.warning("Could not write cache entry %s: %s", path.name, e)
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
