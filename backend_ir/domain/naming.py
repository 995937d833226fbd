"""
Naming convention utilities for Backend IR.

This module provides the pure string helpers every other stage relies on:
case conversion between the conventions used by model, field, route and
file names, plus a small rule-based English pluralizer.
"""

import re
from typing import Tuple

from ..constants import NamingRules


_PASCAL_CASE_RE = re.compile(NamingRules.PASCAL_CASE_PATTERN)
_CAMEL_CASE_RE = re.compile(NamingRules.CAMEL_CASE_PATTERN)

# Last word of a compound identifier ("UserProfile" -> "Profile")
_LAST_WORD_RE = re.compile(r"[A-Z]?[^A-Z]*$")


def to_pascal_case(name: str) -> str:
    """
    Convert a free-form name to PascalCase.

    Any run of non-alphanumeric characters is treated as a word separator
    and the character after it is upper-cased. Existing inner capitals are
    kept, so already PascalCase input is returned unchanged.

    Args:
        name: The string to convert

    Returns:
        The PascalCase string

    Example:
        >>> to_pascal_case("user profile")
        'UserProfile'
        >>> to_pascal_case("blog_post")
        'BlogPost'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub(r"[^a-zA-Z0-9]+(.)", lambda m: m.group(1).upper(), name.strip())
    name = re.sub(r"^[^a-zA-Z0-9]+|[^a-zA-Z0-9]+$", "", name)
    return name[:1].upper() + name[1:]


def to_camel_case(name: str) -> str:
    """
    Convert a free-form name to camelCase.

    Example:
        >>> to_camel_case("UserProfile")
        'userProfile'
    """
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def to_kebab_case(name: str) -> str:
    """
    Convert PascalCase, camelCase or snake_case to kebab-case.

    Example:
        >>> to_kebab_case("UserFollowTag")
        'user-follow-tag'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name)
    name = re.sub(r"[\s_]+", "-", name)
    return name.lower()


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase, PascalCase or kebab-case to snake_case.

    Example:
        >>> to_snake_case("UserAccount")
        'user_account'
        >>> to_snake_case("XMLHttpRequest")
        'xml_http_request'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub(r"[\s\-]+", "_", name)
    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    name = re.sub("__([A-Z])", r"_\1", name)
    name = re.sub("([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def _split_last_word(word: str) -> Tuple[str, str]:
    match = _LAST_WORD_RE.search(word)
    return word[:match.start()], word[match.start():]


def _match_case(template: str, word: str) -> str:
    """Give ``word`` the leading-letter case of ``template``."""
    if template[:1].isupper():
        return word[:1].upper() + word[1:]
    return word[:1].lower() + word[1:]


def pluralize(word: str) -> str:
    """
    Pluralize an English noun, preserving the casing convention of the input.

    Rules, first match wins:
        1. irregular table (person -> people, child -> children, ...)
        2. consonant + "y" -> "ies"
        3. s, ss, sh, ch, x, z -> + "es"
        4. "fe" / "f" -> "ves"
        5. + "s"

    Only the last word of a compound identifier is inflected, so
    "SalesPerson" becomes "SalesPeople" and "blogPost" becomes "blogPosts".

    Example:
        >>> pluralize("Category")
        'Categories'
        >>> pluralize("leaf")
        'leaves'
    """
    if not word:
        return word

    head, tail = _split_last_word(word)
    lower = tail.lower()

    irregular = NamingRules.IRREGULAR_PLURALS.get(lower)
    if irregular:
        return head + _match_case(tail, irregular)

    if re.search(r"[^aeiou]y$", lower):
        return word[:-1] + "ies"
    if re.search(r"(?:s|sh|ch|x|z)$", lower):
        return word + "es"
    if lower.endswith("fe"):
        return word[:-2] + "ves"
    if lower.endswith("f"):
        return word[:-1] + "ves"
    return word + "s"


def singularize(word: str) -> str:
    """
    Best-effort inverse of :func:`pluralize`.

    The heuristics are lossy: "knives" becomes "knif" and words that merely
    end in "s" lose it. Callers must not rely on a round trip.

    Example:
        >>> singularize("Categories")
        'Category'
    """
    if not word:
        return word

    head, tail = _split_last_word(word)
    irregular = NamingRules.IRREGULAR_SINGULARS.get(tail.lower())
    if irregular:
        return head + _match_case(tail, irregular)

    lower = word.lower()
    if lower.endswith("ies") and len(lower) > 3:
        return word[:-3] + "y"
    if lower.endswith("ves"):
        return word[:-3] + "f"
    if re.search(r"(?:ses|shes|ches|xes|zes)$", lower):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss") and len(lower) > 1:
        return word[:-1]
    return word


def is_pascal_case(name: str) -> bool:
    """Check if a name is PascalCase (uppercase start, alphanumeric only)."""
    return bool(name) and bool(_PASCAL_CASE_RE.match(name))


def is_camel_case(name: str) -> bool:
    """Check if a name is camelCase (lowercase start, alphanumeric only)."""
    return bool(name) and bool(_CAMEL_CASE_RE.match(name))


def is_reserved_field_name(name: str) -> bool:
    """Check if a field name collides with an ORM/document internal."""
    return name.lower() in NamingRules.RESERVED_FIELD_NAMES


def is_reserved_model_name(name: str) -> bool:
    """Check if a model name shadows a built-in type of the generated stack."""
    return name in NamingRules.RESERVED_MODEL_NAMES


def sanitize_model_name(name: str) -> str:
    """
    Disambiguate a model name that shadows a built-in type.

    Example:
        >>> sanitize_model_name("Document")
        'AppDocument'
        >>> sanitize_model_name("Invoice")
        'Invoice'
    """
    if is_reserved_model_name(name):
        return f"{NamingRules.MODEL_NAME_PREFIX}{name}"
    return name


def generate_foreign_key_name(model_name: str) -> str:
    """
    Default name of a reference field pointing at ``model_name``.

    Example:
        >>> generate_foreign_key_name("BlogPost")
        'blogPostId'
    """
    return f"{to_camel_case(model_name)}Id"


def generate_join_model_name(source_model: str, target_model: str) -> str:
    """Deterministic join-model name for a many-to-many pair."""
    return f"{to_pascal_case(source_model)}{to_pascal_case(target_model)}"
