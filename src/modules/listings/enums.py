"""
Listing enumerations.
"""

from enum import Enum


class PropertyType(str, Enum):
    """Normalised property type."""

    APARTMENT = "apartment"
    HOUSE = "house"
    LOFT = "loft"
    TOWNHOUSE = "townhouse"
    STUDIO = "studio"
    PENTHOUSE = "penthouse"
    VILLA = "villa"
    UNKNOWN = "unknown"

    def label(self) -> str:
        """Human-readable label (empty for UNKNOWN)."""
        if self is PropertyType.UNKNOWN:
            return ""
        return self.value.capitalize()

    @classmethod
    def from_safe(cls, value: "str | PropertyType | None") -> "PropertyType":
        """
        Convert any value to a PropertyType, mapping unrecognised input to UNKNOWN.

        Examples:
            >>> PropertyType.from_safe("Loft")
            <PropertyType.LOFT: 'loft'>
            >>> PropertyType.from_safe("castle")
            <PropertyType.UNKNOWN: 'unknown'>
        """
        if isinstance(value, PropertyType):
            return value
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class ListingStatus(str, Enum):
    """Listing lifecycle status."""

    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"
    PENDING = "pending"
    WITHDRAWN = "withdrawn"
    UNVERIFIED = "unverified"
    INCOMPLETE = "incomplete"
    FAILED = "failed"

    def label(self) -> str:
        """Human-readable label."""
        return self.value.capitalize()

    @classmethod
    def visible(cls) -> list["ListingStatus"]:
        """Statuses shown by default user-facing queries."""
        return [s for s in cls if s not in (cls.PENDING, cls.INCOMPLETE, cls.FAILED)]
