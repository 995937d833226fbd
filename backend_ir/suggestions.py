"""
Field suggestion providers for Backend IR.

Field lowering asks a provider for constraint, example and documentation
hints. The built-in provider answers from name heuristics. Callers that
consult a remote service do so before lowering and hand the answers over
through ``PrecomputedSuggestionProvider``; lowering itself never blocks.
"""

import copy
import logging
from typing import Any, Dict, Optional, Protocol, Tuple, Union

from .domain.heuristics import infer_smart_defaults
from .domain.models import DeclaredType, FieldSuggestion


logger = logging.getLogger(__name__)


class SuggestionProvider(Protocol):
    """Protocol for field suggestion providers."""

    def suggest(
        self,
        field_name: str,
        field_type: Union[DeclaredType, str],
        model_name: str,
        model_context: Optional[Dict[str, Any]] = None,
    ) -> FieldSuggestion:
        """Return constraint, example and description hints for one field."""
        ...


def _coerce_type(field_type: Union[DeclaredType, str]) -> Optional[DeclaredType]:
    if isinstance(field_type, DeclaredType):
        return field_type
    return DeclaredType.parse(field_type)


class HeuristicSuggestionProvider:
    """
    Suggestion provider backed by field-name classification.

    Output depends only on the field name, its declared type and, for
    enums, the value set passed through ``model_context['enum_values']``.
    """

    def suggest(
        self,
        field_name: str,
        field_type: Union[DeclaredType, str],
        model_name: str,
        model_context: Optional[Dict[str, Any]] = None,
    ) -> FieldSuggestion:
        declared_type = _coerce_type(field_type)
        if declared_type is None:
            # Unknown types are rejected by field lowering; nothing to suggest
            return FieldSuggestion(description=field_name)

        enum_values = (model_context or {}).get('enum_values')
        return infer_smart_defaults(field_name, declared_type, enum_values)


class PrecomputedSuggestionProvider:
    """
    Serves suggestions that were fetched ahead of time.

    Answers are keyed by ``(model_name, field_name)``. Fields without an
    answer fall back to ``fallback`` (the heuristic provider by default).

    Example:
        >>> provider = PrecomputedSuggestionProvider({
        ...     ("User", "nickname"): FieldSuggestion(description="Display nickname"),
        ... })
        >>> provider.suggest("nickname", "string", "User").description
        'Display nickname'
    """

    def __init__(
        self,
        suggestions: Dict[Tuple[str, str], FieldSuggestion],
        fallback: Optional[SuggestionProvider] = None,
    ):
        self.suggestions = dict(suggestions)
        self.fallback = fallback or HeuristicSuggestionProvider()

    def suggest(
        self,
        field_name: str,
        field_type: Union[DeclaredType, str],
        model_name: str,
        model_context: Optional[Dict[str, Any]] = None,
    ) -> FieldSuggestion:
        suggestion = self.suggestions.get((model_name, field_name))
        if suggestion is None:
            logger.debug(f"No precomputed suggestion for {model_name}.{field_name}, using fallback")
            return self.fallback.suggest(field_name, field_type, model_name, model_context)
        # Field lowering merges user constraints into the suggestion
        return copy.deepcopy(suggestion)
