"""
Quality scoring and status resolution.

Evaluates a ListingDTO in three steps:
    1. validate: price, area and city are critical fields
    2. score: 100 minus fixed weights for missing optional fields
    3. resolve status from the validation result

Scoring deductions:
    -20 street
    -10 rooms, description, type
     -5 keywords, images

Status resolution:
    no critical errors      -> AVAILABLE
    some critical missing   -> INCOMPLETE (hidden)
    all critical missing    -> FAILED (hidden)
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.modules.listings.enums import ListingStatus, PropertyType

if TYPE_CHECKING:
    from src.modules.listings.models import ListingDTO

CRITICAL_FIELDS = ("price", "area_m2", "city")

CITY_SENTINELS = {"unknown"}

MAX_SCORE = 100

# Optional field -> deduction when missing
SCORE_WEIGHTS: dict[str, int] = {
    "street": 20,
    "rooms": 10,
    "description": 10,
    "type": 10,
    "keywords": 5,
    "images": 5,
}


@dataclass(frozen=True)
class QualityEvaluation:
    """Result of evaluating a DTO."""

    quality_score: int
    is_fully_parsed: bool
    status: ListingStatus
    validation_errors: dict[str, str] = field(default_factory=dict)


def validate(dto: "ListingDTO") -> dict[str, str]:
    """
    Validate the critical fields of a DTO.

    Returns:
        Map of field name -> error message (empty when valid)
    """
    errors: dict[str, str] = {}

    if not dto.price or dto.price <= 0:
        errors["price"] = "Price must be greater than zero."
    if not dto.area_m2 or dto.area_m2 <= 0:
        errors["area_m2"] = "Area must be greater than zero."

    city = (dto.city or "").strip()
    if not city or city.lower() in CITY_SENTINELS:
        errors["city"] = "City is missing."

    return errors


def missing_optional_fields(dto: "ListingDTO") -> list[str]:
    """List optional fields that are absent on a DTO."""
    missing = []
    if not (dto.street or "").strip():
        missing.append("street")
    if dto.rooms <= 0:
        missing.append("rooms")
    if not (dto.description or "").strip():
        missing.append("description")
    if dto.type is PropertyType.UNKNOWN:
        missing.append("type")
    if not dto.keywords:
        missing.append("keywords")
    if not dto.images:
        missing.append("images")
    return missing


def score(dto: "ListingDTO") -> int:
    """Completeness score in [0, 100]."""
    deduction = sum(SCORE_WEIGHTS[name] for name in missing_optional_fields(dto))
    return max(0, min(MAX_SCORE, MAX_SCORE - deduction))


def resolve_status(validation_errors: dict[str, str]) -> ListingStatus:
    """
    Resolve a lifecycle status from a validation result.

    Examples:
        >>> resolve_status({})
        <ListingStatus.AVAILABLE: 'available'>
        >>> resolve_status({"city": "City is missing."})
        <ListingStatus.INCOMPLETE: 'incomplete'>
    """
    failed = sum(1 for name in CRITICAL_FIELDS if name in validation_errors)

    if failed == 0:
        return ListingStatus.AVAILABLE
    if failed == len(CRITICAL_FIELDS):
        return ListingStatus.FAILED
    return ListingStatus.INCOMPLETE


def is_fully_parsed(dto: "ListingDTO") -> bool:
    """True when no critical field is missing and no optional field is absent."""
    return not validate(dto) and score(dto) == MAX_SCORE


def evaluate(dto: "ListingDTO") -> QualityEvaluation:
    """Run validate -> score -> resolve status in one step."""
    errors = validate(dto)
    quality_score = score(dto)
    return QualityEvaluation(
        quality_score=quality_score,
        is_fully_parsed=not errors and quality_score == MAX_SCORE,
        status=dto.resolve_status(),
        validation_errors=errors,
    )
