import bisect
import logging

from ..pseudonymizer.placeholders import PlaceholderAllocator
from .base import HIGH_CONFIDENCE, Category, Detection

logger = logging.getLogger(__name__)

CONTEXT_LENGTH = 50


def context_snippet(text: str, start: int, end: int, context_length: int = CONTEXT_LENGTH) -> str:
    """Surrounding text for review, with "..." where it was cut."""
    context_start = max(0, start - context_length)
    context_end = min(len(text), end + context_length)

    context = text[context_start:context_end]
    if context_start > 0:
        context = "..." + context
    if context_end < len(text):
        context = context + "..."
    return context


class ScanState:
    """Everything one scan accumulates: claimed spans, placeholders, detections.

    Claimed spans never overlap, so they are kept sorted by start and an
    overlap test only has to look at the two neighbours of a candidate.
    """

    def __init__(self, text: str, auto_approve: bool = False) -> None:
        self.text = text
        self.auto_approve = auto_approve
        self.allocator = PlaceholderAllocator()
        self.detections: list[Detection] = []
        self._starts: list[int] = []
        self._ends: list[int] = []

    def is_claimed(self, start: int, end: int) -> bool:
        idx = bisect.bisect_right(self._starts, start)
        if idx > 0 and self._ends[idx - 1] > start:
            return True
        return idx < len(self._starts) and self._starts[idx] < end

    def claim(self, start: int, end: int) -> bool:
        """Reserve [start, end) unless any part of it is already taken."""
        if start >= end or self.is_claimed(start, end):
            return False
        idx = bisect.bisect_right(self._starts, start)
        self._starts.insert(idx, start)
        self._ends.insert(idx, end)
        return True

    def add(
        self,
        *,
        detection_id: str,
        start: int,
        end: int,
        category: Category,
        subcategory: str,
        confidence: int,
        template: str,
        source: str,
        placeholder_key: str | None = None,
        approved: bool | None = None,
    ) -> Detection | None:
        """Claim a span and record a detection for it.

        placeholder_key overrides the matched text when numbering the
        placeholder (aliases share their primary name's number). approved
        defaults to the auto-approval policy.
        """
        if not self.claim(start, end):
            logger.debug("Span %d-%d already claimed, skipping %s", start, end, detection_id)
            return None

        matched = self.text[start:end]
        if approved is None:
            approved = self.auto_approve and confidence >= HIGH_CONFIDENCE

        detection = Detection(
            id=detection_id,
            text=matched,
            category=category,
            subcategory=subcategory,
            confidence=confidence,
            start=start,
            end=end,
            suggested_placeholder=self.allocator.allocate(template, placeholder_key or matched),
            context=context_snippet(self.text, start, end),
            approved=approved,
            source=source,
        )
        self.detections.append(detection)
        return detection

    def sorted_detections(self) -> list[Detection]:
        return sorted(self.detections, key=lambda d: d.start)
