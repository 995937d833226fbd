"""
Custom exception hierarchy for Backend IR.

This module provides an exception system with rich context and recovery
guidance. Lowering errors additionally carry the full list of violations
collected during a pass so callers can display every problem at once.
"""

from typing import Dict, Any, Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .validators import Violation


class BackendIRError(Exception):
    """
    Base exception for all Backend IR errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [super().__str__()]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class LoweringError(BackendIRError):
    """
    Raised when a lowering pass finds fatal violations.

    The ``violations`` attribute holds every violation of the pass,
    warnings included, in the order they were found.
    """

    default_error_code = "LOWERING_ERROR"
    default_suggestions: List[str] = [
        "Fix the reported problems in the configuration and run again",
    ]

    def __init__(
        self,
        message: str,
        violations: Optional[List["Violation"]] = None,
        **kwargs
    ):
        self.violations = list(violations or [])
        context = kwargs.get('context', {})
        errors = [v for v in self.violations if v.is_fatal]
        if errors:
            context.setdefault('error_count', len(errors))

        suggestions = kwargs.get('suggestions') or list(self.default_suggestions)

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code=kwargs.get('error_code', self.default_error_code)
        )

    @property
    def errors(self) -> List["Violation"]:
        """Fatal violations only."""
        return [v for v in self.violations if v.is_fatal]

    def to_list(self) -> List[Dict[str, Any]]:
        """Structured ``{path, code, message}`` records for every violation."""
        return [v.to_dict() for v in self.violations]


class SchemaError(LoweringError):
    """Raised when required configuration sections are missing or malformed."""

    default_error_code = "SCHEMA_ERROR"
    default_suggestions = [
        "Check that the 'project' and 'database' sections are present",
        "Compare the configuration against the documented schema",
    ]


class NamingViolation(LoweringError):
    """Raised for duplicate, reserved or unusable model and field names."""

    default_error_code = "NAMING_VIOLATION"
    default_suggestions = [
        "Give every model a unique PascalCase name",
        "Give every field a unique camelCase name within its model",
        "Avoid reserved identifiers such as 'id', '_id' or 'schema'",
    ]


class UnsupportedFieldType(LoweringError):
    """Raised when a field declares a type the lowering table does not know."""

    default_error_code = "UNSUPPORTED_FIELD_TYPE"
    default_suggestions = [
        "Use one of: string, number, boolean, date, datetime, string[], "
        "json, json[], reference, reference[], enum",
    ]

    def __init__(self, message: str, declared_type: str = None, **kwargs):
        context = kwargs.pop('context', {})
        if declared_type is not None:
            context['declared_type'] = declared_type
        self.declared_type = declared_type
        super().__init__(message, context=context, **kwargs)


class UnknownModelReference(LoweringError):
    """Raised when a relationship points at a model absent from the project."""

    default_error_code = "UNKNOWN_MODEL_REFERENCE"
    default_suggestions = [
        "Check the spelling of sourceModel/targetModel",
        "Declare the referenced model in the 'models' section",
    ]

    def __init__(self, message: str, model_name: str = None, **kwargs):
        context = kwargs.pop('context', {})
        if model_name is not None:
            context['model'] = model_name
        self.model_name = model_name
        super().__init__(message, context=context, **kwargs)
