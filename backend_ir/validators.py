"""
Violation collection for Backend IR.

Every lowering pass records problems into a shared ``Diagnostics`` object
instead of failing on the first one. At the end of a pass the collected
fatal violations are raised together as a single typed exception.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional, Type

from .exceptions import (
    LoweringError,
    NamingViolation,
    SchemaError,
    UnknownModelReference,
    UnsupportedFieldType,
)


logger = logging.getLogger(__name__)


class Severity(Enum):
    """How a violation affects lowering."""

    ERROR = "error"
    WARNING = "warning"


class ViolationCode:
    """Stable codes for every violation the pipeline can report."""

    # Schema
    MISSING_SECTION = "MISSING_SECTION"
    INVALID_CONFIG = "INVALID_CONFIG"
    OAUTH_REQUIRES_AUTH = "OAUTH_REQUIRES_AUTH"

    # Naming
    INVALID_MODEL_NAME_FORMAT = "INVALID_MODEL_NAME_FORMAT"
    INVALID_FIELD_NAME_FORMAT = "INVALID_FIELD_NAME_FORMAT"
    INVALID_FIELD_NAME = "INVALID_FIELD_NAME"
    RESERVED_FIELD_NAME = "RESERVED_FIELD_NAME"
    DUPLICATE_MODEL_NAME = "DUPLICATE_MODEL_NAME"
    DUPLICATE_FIELD_NAME = "DUPLICATE_FIELD_NAME"
    MODEL_NAME_DISAMBIGUATED = "MODEL_NAME_DISAMBIGUATED"

    # Fields
    UNSUPPORTED_FIELD_TYPE = "UNSUPPORTED_FIELD_TYPE"
    AMBIGUOUS_PATTERN = "AMBIGUOUS_PATTERN"
    EMPTY_ENUM = "EMPTY_ENUM"

    # Relationships
    UNKNOWN_MODEL_REFERENCE = "UNKNOWN_MODEL_REFERENCE"
    SELF_REFERENTIAL_RELATIONSHIP = "SELF_REFERENTIAL_RELATIONSHIP"
    DUPLICATE_INJECTION = "DUPLICATE_INJECTION"
    IGNORED_ATTRIBUTES = "IGNORED_ATTRIBUTES"

    # Seeding
    SEED_DEPENDENCY_CYCLE = "SEED_DEPENDENCY_CYCLE"
    SEED_COUNT_CAPPED = "SEED_COUNT_CAPPED"


# Exception class each fatal code maps to
EXCEPTION_BY_CODE: Dict[str, Type[LoweringError]] = {
    ViolationCode.MISSING_SECTION: SchemaError,
    ViolationCode.INVALID_CONFIG: SchemaError,
    ViolationCode.OAUTH_REQUIRES_AUTH: SchemaError,
    ViolationCode.INVALID_MODEL_NAME_FORMAT: NamingViolation,
    ViolationCode.INVALID_FIELD_NAME: NamingViolation,
    ViolationCode.RESERVED_FIELD_NAME: NamingViolation,
    ViolationCode.DUPLICATE_MODEL_NAME: NamingViolation,
    ViolationCode.DUPLICATE_FIELD_NAME: NamingViolation,
    ViolationCode.UNSUPPORTED_FIELD_TYPE: UnsupportedFieldType,
    ViolationCode.UNKNOWN_MODEL_REFERENCE: UnknownModelReference,
}

# Exception raised for a pass, most specific first; the first class with a
# fatal violation wins regardless of the order violations were recorded in
EXCEPTION_PRECEDENCE: List[Type[LoweringError]] = [
    UnknownModelReference,
    UnsupportedFieldType,
    SchemaError,
    NamingViolation,
]


@dataclass
class Violation:
    """One problem found while lowering, addressed by a config path."""

    path: str
    code: str
    message: str
    severity: Severity = Severity.ERROR
    suggestion: Optional[str] = None
    # The offending name or value (missing model, bad type, ...)
    subject: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = {
            'path': self.path,
            'code': self.code,
            'message': self.message,
            'severity': self.severity.value,
        }
        if self.suggestion:
            data['suggestion'] = self.suggestion
        if self.subject is not None:
            data['subject'] = self.subject
        return data


@dataclass
class Diagnostics:
    """Accumulates violations across the passes of one lowering run."""

    violations: List[Violation] = field(default_factory=list)

    def add_error(
        self,
        path: str,
        code: str,
        message: str,
        suggestion: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> Violation:
        """Record a fatal violation."""
        violation = Violation(path, code, message, Severity.ERROR, suggestion, subject)
        self.violations.append(violation)
        logger.debug(f"{path}: {message}")
        return violation

    def add_warning(
        self,
        path: str,
        code: str,
        message: str,
        suggestion: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> Violation:
        """Record a non-fatal violation."""
        violation = Violation(path, code, message, Severity.WARNING, suggestion, subject)
        self.violations.append(violation)
        logger.warning(f"{path}: {message}")
        return violation

    @property
    def errors(self) -> List[Violation]:
        return [v for v in self.violations if v.is_fatal]

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if not v.is_fatal]

    @property
    def has_errors(self) -> bool:
        return any(v.is_fatal for v in self.violations)

    def codes(self) -> List[str]:
        """Codes of all recorded violations, in order."""
        return [v.code for v in self.violations]

    def raise_if_fatal(self, stage: str) -> None:
        """
        Raise the typed exception for the fatal violations, if any.

        Args:
            stage: Human-readable name of the pass, used in the message

        Raises:
            LoweringError: the subclass ranked highest in EXCEPTION_PRECEDENCE,
                carrying every violation recorded so far
        """
        errors = self.errors
        if not errors:
            return

        first, exc_class = errors[0], LoweringError
        for candidate in EXCEPTION_PRECEDENCE:
            match = next((e for e in errors if EXCEPTION_BY_CODE.get(e.code) is candidate), None)
            if match is not None:
                first, exc_class = match, candidate
                break
        summary = "; ".join(e.message for e in errors)
        message = f"{stage} failed with {len(errors)} error(s): {summary}"

        if exc_class is UnknownModelReference:
            raise UnknownModelReference(
                message, model_name=first.subject, violations=self.violations
            )
        if exc_class is UnsupportedFieldType:
            raise UnsupportedFieldType(
                message, declared_type=first.subject, violations=self.violations
            )
        raise exc_class(message, violations=self.violations)
