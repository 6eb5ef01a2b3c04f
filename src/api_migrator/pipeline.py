"""Migration driver: load module analyses, transform each, persist artifacts."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from api_migrator.config import MigrationSettings
from api_migrator.errors import InputError, MigratorError
from api_migrator.llm import LlmClient, SpecGenerator
from api_migrator.model.analysis import AnalysisResult
from api_migrator.model.canonical import MigrationSpec
from api_migrator.model.output import FastApiSpec
from api_migrator.transform.cache import TransformCache
from api_migrator.transform.mapper import DeterministicTransformer
from api_migrator.transform.orchestrator import ChunkedTransformer, TransformStats
from api_migrator.transform.prompts import PromptBuilder

logger = logging.getLogger(__name__)

ANALYSIS_SUFFIXES = (".json", ".yaml", ".yml")
META_DIR = ".migrator"


@dataclass
class ModuleInput:
    analysis: AnalysisResult
    spec: MigrationSpec


@dataclass
class ModuleResult:
    module_name: str
    spec: FastApiSpec
    artifact_dir: Path
    stats: TransformStats | None = None


def _read_payload(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e
    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InputError(f"{path} is not valid JSON/YAML: {e}") from e
    if not isinstance(data, dict):
        raise InputError(f"{path} must contain an object")
    return data


def load_module(path: Path) -> ModuleInput:
    """One analysis file -> one module. Duplicate ids keep their first occurrence."""
    data = _read_payload(path)
    analysis = AnalysisResult.from_dict(data)
    project_name = data.get("projectName") or path.resolve().parent.name
    module_name = data.get("moduleName") or path.stem
    raw_metadata = data.get("metadata")
    metadata = {str(k): str(v) for k, v in raw_metadata.items()} if isinstance(raw_metadata, dict) else {}
    metadata.setdefault("root", str(path.resolve().parent))
    metadata.setdefault("module", module_name)
    return ModuleInput(analysis, analysis.to_migration_spec(project_name, module_name, metadata))


def load_modules(input_path: Path) -> list[ModuleInput]:
    """Load a single analysis file, or every analysis file of a directory in name order."""
    input_path = Path(input_path)
    if input_path.is_file():
        return [load_module(input_path)]
    if not input_path.is_dir():
        raise InputError(f"Input not found: {input_path}")
    files = sorted(p for p in input_path.iterdir() if p.is_file() and p.suffix in ANALYSIS_SUFFIXES)
    return [load_module(p) for p in files]


def _write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


class MigrationPipeline:
    """Runs the transform for every module found in ``settings.input``."""

    def __init__(
        self,
        settings: MigrationSettings,
        transformer: ChunkedTransformer | None = None,
        deterministic: DeterministicTransformer | None = None,
    ):
        self.settings = settings
        self.deterministic = deterministic or DeterministicTransformer()
        if transformer is None and settings.use_llm:
            transformer = ChunkedTransformer(
                generator=SpecGenerator(
                    LlmClient(model=settings.model, timeout=settings.timeout),
                    PromptBuilder(settings.prompts_dir),
                ),
                fallback=self.deterministic,
                cache=TransformCache(settings.cache_dir),
            )
        self.transformer = transformer

    def run(self) -> list[ModuleResult]:
        if self.settings.input is None or self.settings.output is None:
            raise InputError("Both input and output must be configured")

        modules = load_modules(self.settings.input)
        if not modules:
            logger.warning("No modules detected under %s", self.settings.input)
            return []
        logger.info("Detected %d module(s)", len(modules))

        return [self._migrate_module(module) for module in modules]

    def _migrate_module(self, module: ModuleInput) -> ModuleResult:
        spec = module.spec
        logger.info(
            "Transforming module %s (%d endpoints, %d DTOs)",
            spec.module_name,
            len(spec.endpoints),
            len(spec.dtos),
        )
        stats = None
        if self.settings.use_llm and self.transformer is not None:
            fastapi_spec = self.transformer.transform(spec, self.settings.max_chunk_size)
            stats = self.transformer.last_stats
        else:
            fastapi_spec = self.deterministic.transform(spec)

        meta_dir = self.settings.output / META_DIR / spec.module_name
        try:
            meta_dir.mkdir(parents=True, exist_ok=True)
            _write_json(meta_dir / "analysis.json", module.analysis.to_dict())
            _write_json(meta_dir / "fastapi-spec.json", fastapi_spec.to_json_dict())
        except OSError as e:
            raise MigratorError(f"Cannot write artifacts to {meta_dir}: {e}") from e

        return ModuleResult(spec.module_name, fastapi_spec, meta_dir, stats)
