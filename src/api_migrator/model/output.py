"""FastAPI generation model: what the renderer turns into Python files."""

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from api_migrator.errors import EmptyResponseError, SpecParseError
from api_migrator.model.canonical import ParameterSpec


class OutputModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PydanticField(OutputModel):
    name: str
    type: str
    optional: bool = False
    collection: bool = False
    alias: str | None = None
    constraints: dict[str, Any] = {}


class PydanticModel(OutputModel):
    name: str
    fields: list[PydanticField] = []


class FastApiRoute(OutputModel):
    path: str
    method: str
    function_name: str | None = None
    request_model: str | None = Field(
        default=None, validation_alias=AliasChoices("requestModel", "requestBody", "request_model")
    )
    response_model: str | None = Field(
        default=None, validation_alias=AliasChoices("responseModel", "responseBody", "response_model")
    )
    status_code: int | None = None
    query_params: list[ParameterSpec] = []
    path_params: list[ParameterSpec] = []
    header_params: list[ParameterSpec] = []


class FastApiSpec(OutputModel):
    """Models and routes for one module (or one chunk of it).

    Both lists are required so that an LLM answer missing either is rejected
    rather than silently dropping endpoints.
    """

    models: list[PydanticModel]
    routes: list[FastApiRoute]

    def to_pretty_json(self) -> str:
        return json.dumps(self.to_json_dict(), indent=2, ensure_ascii=False)


def extract_json_object(text: str) -> str:
    """Slice from the first '{' to the last '}' to drop prose around the JSON."""
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return text[start:end + 1]
    return text


def parse_fastapi_spec(text: str | None) -> FastApiSpec:
    """Parse LLM or cache text into a FastApiSpec."""
    if text is None or not text.strip():
        raise EmptyResponseError("LLM returned empty content")
    try:
        data = json.loads(extract_json_object(text))
    except json.JSONDecodeError as e:
        raise SpecParseError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SpecParseError("Response JSON is not an object")
    try:
        return FastApiSpec.model_validate(data)
    except ValidationError as e:
        raise SpecParseError(f"Response does not match FastApiSpec: {e}") from e
