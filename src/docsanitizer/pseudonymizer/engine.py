import logging
from dataclasses import dataclass, field

from ..detectors.base import Category, Detection
from .mapping import MappingStore

logger = logging.getLogger(__name__)


@dataclass
class EntityMapping:
    placeholder: str
    original_values: list[str]
    category: Category
    occurrences: int = 0


@dataclass
class MaskingResult:
    masked_text: str
    mapping: dict[str, list[str]] = field(default_factory=dict)
    entity_mappings: list[EntityMapping] = field(default_factory=list)
    total_masked: int = 0
    by_category: dict[Category, int] = field(default_factory=lambda: {c: 0 for c in Category})


def apply_masking(text: str, detections: list[Detection]) -> MaskingResult:
    """Replace approved detections with their placeholders.

    Unapproved detections are left untouched. Replacement runs from the end
    of the text towards the start so offsets not yet processed stay valid.
    """
    approved = sorted((d for d in detections if d.approved), key=lambda d: d.start, reverse=True)

    masked = text
    boundary = len(text)
    applied: list[Detection] = []

    for detection in approved:
        if detection.end > boundary or detection.start < 0 or detection.start > detection.end:
            logger.debug(
                "Skipping detection %s: span %d-%d overlaps an earlier replacement",
                detection.id,
                detection.start,
                detection.end,
            )
            continue

        masked = masked[: detection.start] + detection.suggested_placeholder + masked[detection.end :]
        boundary = detection.start
        applied.append(detection)

    # Mapping values are recorded in document order
    store = MappingStore()
    entity_mappings: dict[str, EntityMapping] = {}
    by_category = {c: 0 for c in Category}
    for detection in reversed(applied):
        store.add(detection.suggested_placeholder, detection.text)
        by_category[detection.category] += 1
        entry = entity_mappings.setdefault(
            detection.suggested_placeholder,
            EntityMapping(detection.suggested_placeholder, [], detection.category),
        )
        entry.occurrences += 1

    mapping = store.mapping
    for placeholder, entry in entity_mappings.items():
        entry.original_values = mapping[placeholder]

    return MaskingResult(
        masked_text=masked,
        mapping=mapping,
        entity_mappings=list(entity_mappings.values()),
        total_masked=len(applied),
        by_category=by_category,
    )
