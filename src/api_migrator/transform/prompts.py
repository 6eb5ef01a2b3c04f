"""Loads the FastAPI transform prompt templates."""

from pathlib import Path

from api_migrator.errors import PromptTemplateError
from api_migrator.model.canonical import MigrationSpec

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

SYSTEM_TEMPLATE = "fastapi_transform_system.md"
USER_TEMPLATE = "fastapi_transform_user.md"
SPEC_MARKER = "{{spec}}"


class PromptBuilder:
    """Builds the system and user messages for one chunk."""

    def __init__(self, prompts_dir: Path | None = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir else PROMPTS_DIR

    def system_prompt(self) -> str:
        return self._load(SYSTEM_TEMPLATE)

    def user_prompt(self, spec: MigrationSpec) -> str:
        template = self._load(USER_TEMPLATE)
        return template.replace(SPEC_MARKER, spec.canonical_json(), 1)

    def _load(self, name: str) -> str:
        path = self.prompts_dir / name
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise PromptTemplateError(f"Failed to load prompt: {path}") from e
