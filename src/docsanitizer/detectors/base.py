from dataclasses import dataclass, field
from enum import Enum


class Category(Enum):
    PERSONAL = "personal"
    ORGANIZATIONAL = "organizational"
    FINANCIAL = "financial"
    TECHNICAL = "technical"
    CUSTOM = "custom"


# Confidence at or above which a detection may be approved without review
HIGH_CONFIDENCE = 90
MEDIUM_CONFIDENCE = 70


@dataclass
class Detection:
    """A span of sensitive text found during one scan."""

    id: str
    text: str
    category: Category
    subcategory: str
    confidence: int
    start: int  # Character offset in the scanned text
    end: int  # Character offset in the scanned text (exclusive)
    suggested_placeholder: str
    context: str = ""
    approved: bool = False
    source: str = ""  # "rule", "custom" or "ner"

    def overlaps(self, other: "Detection") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class NerSpan:
    """A person or organization span returned by an entity recognizer."""

    text: str
    start: int
    end: int


@dataclass
class NerResult:
    success: bool
    persons: list[NerSpan] = field(default_factory=list)
    organizations: list[NerSpan] = field(default_factory=list)
    error: str | None = None
