"""
Name-based field classification for Backend IR.

A field's lowercased name is matched against substring vocabularies to put
it in a semantic category (email, price, slug, ...). Field lowering uses
the category to infer constraints, validators and documentation; the
seeding planner uses the same category to pick a value generator, so both
stages always agree on what a field means.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from .models import DeclaredType, FieldConstraints, FieldSuggestion


class FieldCategory(Enum):
    """Semantic category of a field inferred from its name and type."""

    # Strings
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    PASSWORD = "password"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    NAME = "name"
    TITLE = "title"
    DESCRIPTION = "description"
    SLUG = "slug"
    ADDRESS = "address"
    COLOR = "color"
    TEXT = "text"

    # Numbers
    AGE = "age"
    PRICE = "price"
    QUANTITY = "quantity"
    RATING = "rating"
    PERCENT = "percent"
    NUMBER = "number"

    # Fixed by declared type
    FLAG = "flag"
    DATE = "date"
    DATETIME = "datetime"
    STRING_LIST = "string_list"
    OBJECT = "object"
    OBJECT_LIST = "object_list"
    REFERENCE = "reference"
    REFERENCE_LIST = "reference_list"
    CHOICE = "choice"


# Checked in order; the first category with a matching substring wins
STRING_VOCABULARY: List[Tuple[FieldCategory, Tuple[str, ...]]] = [
    (FieldCategory.EMAIL, ("email",)),
    (FieldCategory.URL, ("url", "website", "link")),
    (FieldCategory.PHONE, ("phone", "mobile")),
    (FieldCategory.PASSWORD, ("password",)),
    (FieldCategory.NAME, ("name", "firstname", "lastname")),
    (FieldCategory.TITLE, ("title",)),
    (FieldCategory.DESCRIPTION, ("description", "content", "body")),
    (FieldCategory.SLUG, ("slug",)),
    (FieldCategory.ADDRESS, ("address",)),
    (FieldCategory.COLOR, ("color",)),
]

NUMBER_VOCABULARY: List[Tuple[FieldCategory, Tuple[str, ...]]] = [
    (FieldCategory.AGE, ("age",)),
    (FieldCategory.PRICE, ("price", "cost", "amount")),
    (FieldCategory.QUANTITY, ("quantity", "count", "stock")),
    (FieldCategory.RATING, ("rating", "score")),
    (FieldCategory.PERCENT, ("percent", "rate")),
]

FIXED_CATEGORIES: Dict[DeclaredType, FieldCategory] = {
    DeclaredType.BOOLEAN: FieldCategory.FLAG,
    DeclaredType.DATE: FieldCategory.DATE,
    DeclaredType.DATETIME: FieldCategory.DATETIME,
    DeclaredType.STRING_ARRAY: FieldCategory.STRING_LIST,
    DeclaredType.JSON: FieldCategory.OBJECT,
    DeclaredType.JSON_ARRAY: FieldCategory.OBJECT_LIST,
    DeclaredType.REFERENCE: FieldCategory.REFERENCE,
    DeclaredType.REFERENCE_ARRAY: FieldCategory.REFERENCE_LIST,
    DeclaredType.ENUM: FieldCategory.CHOICE,
}


def _match(lower_name: str, vocabulary) -> Optional[FieldCategory]:
    for category, markers in vocabulary:
        if any(marker in lower_name for marker in markers):
            return category
    return None


def classify_field(field_name: str, declared_type: DeclaredType) -> FieldCategory:
    """
    Classify a field by substring match on its lowercased name.

    Args:
        field_name: camelCase field name
        declared_type: The field's declared type

    Returns:
        The semantic category of the field

    Example:
        >>> classify_field("contactEmail", DeclaredType.STRING)
        <FieldCategory.EMAIL: 'email'>
        >>> classify_field("unitPrice", DeclaredType.NUMBER)
        <FieldCategory.PRICE: 'price'>
    """
    lower_name = field_name.lower()

    if declared_type == DeclaredType.STRING:
        category = _match(lower_name, STRING_VOCABULARY)
        if category == FieldCategory.NAME:
            if "first" in lower_name:
                return FieldCategory.FIRST_NAME
            if "last" in lower_name:
                return FieldCategory.LAST_NAME
        return category or FieldCategory.TEXT

    if declared_type == DeclaredType.NUMBER:
        return _match(lower_name, NUMBER_VOCABULARY) or FieldCategory.NUMBER

    return FIXED_CATEGORIES[declared_type]


def _humanize(field_name: str) -> str:
    return field_name[:1].upper() + field_name[1:]


def infer_smart_defaults(
    field_name: str,
    declared_type: DeclaredType,
    enum_values: Optional[List[str]] = None,
) -> FieldSuggestion:
    """
    Canonical constraints, validator tags, example and description for a field.

    This is the built-in fallback used whenever no external suggestion is
    available for the field.
    """
    category = classify_field(field_name, declared_type)
    label = _humanize(field_name)

    if category == FieldCategory.EMAIL:
        return FieldSuggestion(
            validators=["is-email"],
            example="user@example.com",
            description="Email address",
        )
    if category == FieldCategory.URL:
        return FieldSuggestion(
            constraints=FieldConstraints(max_length=2000),
            validators=["is-url"],
            example="https://example.com",
            description="URL address",
        )
    if category == FieldCategory.PHONE:
        return FieldSuggestion(
            constraints=FieldConstraints(
                min_length=10, max_length=20, pattern=r"^\+?[1-9]\d{1,14}$"
            ),
            example="+1234567890",
            description="Phone number",
        )
    if category == FieldCategory.PASSWORD:
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=8, max_length=128),
            validators=["is-strong-password"],
            example="P@ssw0rd123",
            description="Password (stored hashed)",
        )
    if category in (FieldCategory.FIRST_NAME, FieldCategory.LAST_NAME, FieldCategory.NAME):
        examples = {
            FieldCategory.FIRST_NAME: "John",
            FieldCategory.LAST_NAME: "Doe",
            FieldCategory.NAME: "Sample Name",
        }
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=2, max_length=50),
            example=examples[category],
            description=label,
        )
    if category == FieldCategory.TITLE:
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=3, max_length=100),
            example="Sample Title",
            description="Title or heading",
        )
    if category == FieldCategory.DESCRIPTION:
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=10, max_length=5000),
            example="This is a sample description text",
            description="Description or content",
        )
    if category == FieldCategory.SLUG:
        return FieldSuggestion(
            constraints=FieldConstraints(
                min_length=3, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
            ),
            example="sample-slug",
            description="URL-friendly slug",
        )
    if category == FieldCategory.ADDRESS:
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=5, max_length=500),
            example="123 Main St, City, State 12345",
            description="Physical address",
        )
    if category == FieldCategory.COLOR:
        return FieldSuggestion(
            constraints=FieldConstraints(
                min_length=4, max_length=7, pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
            ),
            example="#FF5733",
            description="Hex color code",
        )
    if category == FieldCategory.TEXT:
        return FieldSuggestion(
            constraints=FieldConstraints(min_length=1, max_length=255),
            example="Sample text",
            description=label,
        )

    if category == FieldCategory.AGE:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=150),
            validators=["is-int"],
            example=25,
            description="Age in years",
        )
    if category == FieldCategory.PRICE:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=999999.99),
            validators=["is-positive"],
            example=99.99,
            description="Price amount",
        )
    if category == FieldCategory.QUANTITY:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=999999),
            validators=["is-int"],
            example=100,
            description="Quantity or count",
        )
    if category == FieldCategory.RATING:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=5),
            example=4.5,
            description="Rating score",
        )
    if category == FieldCategory.PERCENT:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=100),
            example=75,
            description="Percentage value",
        )
    if category == FieldCategory.NUMBER:
        return FieldSuggestion(
            constraints=FieldConstraints(min=0, max=1000000),
            example=42,
            description=f"{label} value",
        )

    if category == FieldCategory.FLAG:
        lower_name = field_name.lower()
        is_predicate = lower_name.startswith("is") or lower_name.startswith("has")
        return FieldSuggestion(
            example=True,
            description=label if is_predicate else f"Is {field_name}",
        )
    if category == FieldCategory.DATE:
        return FieldSuggestion(example="2024-01-01", description="Calendar date")
    if category == FieldCategory.DATETIME:
        return FieldSuggestion(example="2024-01-01T00:00:00.000Z", description="Date and time")
    if category == FieldCategory.STRING_LIST:
        return FieldSuggestion(example=["item1", "item2"], description=f"{label} array")
    if category == FieldCategory.OBJECT:
        return FieldSuggestion(example={"key": "value"}, description=f"{label} object")
    if category == FieldCategory.OBJECT_LIST:
        return FieldSuggestion(example=[{"key": "value"}], description=f"{label} list")
    if category == FieldCategory.REFERENCE:
        return FieldSuggestion(example="507f1f77bcf86cd799439011", description=f"{label} reference")
    if category == FieldCategory.REFERENCE_LIST:
        return FieldSuggestion(example=["507f1f77bcf86cd799439011"], description=f"{label} references")

    # FieldCategory.CHOICE
    values = list(enum_values or [])
    return FieldSuggestion(
        example=values[0] if values else None,
        description=f"One of: {', '.join(values)}" if values else label,
    )
