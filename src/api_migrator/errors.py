"""Exception hierarchy for api-migrator."""


class MigratorError(Exception):
    """Base class for all api-migrator errors."""


class ConfigError(MigratorError):
    """Raised when settings cannot be loaded or fail validation."""


class InputError(MigratorError):
    """Raised when an analysis input file is missing or malformed."""


class PromptTemplateError(MigratorError):
    """Raised when a prompt template cannot be loaded."""


class EmptyResponseError(MigratorError):
    """Raised when the LLM returns empty or blank text."""


class SpecParseError(MigratorError):
    """Raised when LLM output does not parse as a FastApiSpec."""
