"""
Exception hierarchy for the TypeScript generator.

Every error carries a context mapping and a list of hints for the user.
Extraction errors are per class: the pipeline logs them and moves on to the
next strategy or class. Configuration and output errors end the run.
"""

from typing import Dict, Any, Optional, List


class TypeGeneratorError(Exception):
    """
    Root of the generator's errors.

    Subclasses set ``error_code`` and, optionally, ``default_suggestions``
    which are used when the raiser does not pass its own.
    """

    error_code: str = "GENERATOR_ERROR"
    default_suggestions: List[str] = []

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.suggestions = list(suggestions or self.default_suggestions)
        if error_code:
            self.error_code = error_code

    def __str__(self) -> str:
        parts = [self.message, f"[{self.error_code}]"]
        parts.extend(f"  {key} = {value}" for key, value in self.context.items())
        if self.suggestions:
            parts.append("Try:")
            parts.extend(f"  - {hint}" for hint in self.suggestions)
        return "\n".join(parts)


class ConfigurationError(TypeGeneratorError):
    """Invalid or missing generator configuration."""

    error_code = "CONFIG_ERROR"
    default_suggestions = [
        "Check the YAML syntax of the configuration file",
        "Make sure every scan path is an importable Python package",
    ]

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if config_file:
            context["config_file"] = config_file
        super().__init__(message, context=context, **kwargs)


class DiscoveryError(TypeGeneratorError):
    """A scan root or configured base class could not be loaded."""

    error_code = "DISCOVERY_ERROR"

    def __init__(self, message: str, path: str = None, class_name: str = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if path:
            context["path"] = path
        if class_name:
            context["class_name"] = class_name
        super().__init__(message, context=context, **kwargs)


class ExtractionError(TypeGeneratorError):
    """One extraction strategy failed for one class."""

    error_code = "EXTRACTION_ERROR"

    def __init__(self, message: str, class_name: str = None, strategy: str = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if class_name:
            context["class_name"] = class_name
        if strategy:
            context["strategy"] = strategy
        super().__init__(message, context=context, **kwargs)


class ExecutionTimeoutError(ExtractionError):
    """A call into inspected code ran past the execution bound."""

    error_code = "EXECUTION_TIMEOUT"

    def __init__(self, message: str, timeout: float = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if timeout is not None:
            context["timeout"] = timeout
        super().__init__(message, strategy="execution", context=context, **kwargs)


class SchemaIntrospectionError(TypeGeneratorError):
    """The database could not describe a model's table."""

    error_code = "INTROSPECTION_ERROR"
    default_suggestions = [
        "Check the DATABASES setting the generator runs with",
        "Run migrations so the table exists",
        "Switch properties_mode to 'declared' when no database is reachable",
    ]

    def __init__(self, message: str, table: str = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if table:
            context["table"] = table
        super().__init__(message, context=context, **kwargs)


class OutputWriteError(TypeGeneratorError):
    """Generated text could not be persisted."""

    error_code = "OUTPUT_WRITE_ERROR"
    default_suggestions = [
        "Make sure the output directory is writable",
        "Single-file output needs a file path, split output needs a directory",
    ]

    def __init__(self, message: str, destination: str = None, **kwargs):
        context = dict(kwargs.pop("context", None) or {})
        if destination:
            context["destination"] = destination
        super().__init__(message, context=context, **kwargs)
