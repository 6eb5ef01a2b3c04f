"""LLM client wrapper around litellm, plus the spec-generation adapter.

``LlmClient`` is the raw prompt-in/text-out call. ``SpecGenerator`` turns one
chunk into a ``GenerationResult`` whose failure, if any, carries an explicit
``FailureKind`` so the orchestrator never has to inspect exception text.
"""

import enum
import logging
import os
from dataclasses import dataclass

from litellm import ContextWindowExceededError, completion

from api_migrator.errors import EmptyResponseError, SpecParseError
from api_migrator.model.canonical import MigrationSpec
from api_migrator.model.output import FastApiSpec, parse_fastapi_spec
from api_migrator.transform.prompts import PromptBuilder

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MODEL_ENV_VAR = "API_MIGRATOR_MODEL"

# Provider messages that mean "the prompt did not fit the model's input budget".
CONTEXT_LIMIT_PHRASES = (
    "context length",
    "context window",
    "context_length_exceeded",
    "tokens to keep",
    "maximum context",
    "too many tokens",
    "prompt is too long",
)


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(self, model: str | None = None, timeout: float | None = None):
        self.model = model or os.getenv(MODEL_ENV_VAR) or DEFAULT_MODEL
        self.timeout = timeout

    def call(self, system: str, user: str) -> str:
        """Send a system+user message to the LLM and return the response text."""
        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        response = completion(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            **kwargs,
        )
        return response.choices[0].message.content or ""


class FailureKind(enum.Enum):
    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"
    PARSE_ERROR = "parse_error"
    INPUT_SIZE_EXCEEDED = "input_size_exceeded"


@dataclass(frozen=True)
class GenerationResult:
    spec: FastApiSpec | None = None
    failure: FailureKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.spec is not None

    @classmethod
    def success(cls, spec: FastApiSpec) -> "GenerationResult":
        return cls(spec=spec)

    @classmethod
    def failed(cls, kind: FailureKind, message: str) -> "GenerationResult":
        return cls(failure=kind, message=message)


def _exception_chain(exc: BaseException):
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_failure(exc: BaseException) -> FailureKind:
    """INPUT_SIZE_EXCEEDED if any exception in the chain reports a context overflow."""
    for error in _exception_chain(exc):
        if isinstance(error, ContextWindowExceededError):
            return FailureKind.INPUT_SIZE_EXCEEDED
        message = str(error).lower()
        if any(phrase in message for phrase in CONTEXT_LIMIT_PHRASES):
            return FailureKind.INPUT_SIZE_EXCEEDED
    return FailureKind.TRANSPORT


class SpecGenerator:
    """Asks the LLM to transform one chunk into a FastApiSpec fragment."""

    def __init__(self, client: LlmClient | None = None, prompts: PromptBuilder | None = None):
        self.client = client or LlmClient()
        self.prompts = prompts or PromptBuilder()

    def generate(self, chunk: MigrationSpec) -> GenerationResult:
        system = self.prompts.system_prompt()
        user = self.prompts.user_prompt(chunk)
        try:
            text = self.client.call(system=system, user=user)
        except Exception as e:
            kind = classify_failure(e)
            logger.debug("LLM call failed (%s): %s", kind.value, e)
            return GenerationResult.failed(kind, str(e))

        try:
            return GenerationResult.success(parse_fastapi_spec(text))
        except EmptyResponseError as e:
            return GenerationResult.failed(FailureKind.EMPTY_RESPONSE, str(e))
        except SpecParseError as e:
            return GenerationResult.failed(FailureKind.PARSE_ERROR, str(e))
