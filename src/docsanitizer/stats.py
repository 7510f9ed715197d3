from dataclasses import dataclass, field

from .detectors.base import HIGH_CONFIDENCE, MEDIUM_CONFIDENCE, Category, Detection


def confidence_band(confidence: int) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


@dataclass
class ScanStats:
    total_detections: int = 0
    by_category: dict[Category, int] = field(default_factory=lambda: {c: 0 for c in Category})
    by_confidence: dict[str, int] = field(default_factory=lambda: {"high": 0, "medium": 0, "low": 0})
    processing_time_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_detections": self.total_detections,
            "by_category": {c.value: n for c, n in self.by_category.items()},
            "by_confidence": dict(self.by_confidence),
            "processing_time_ms": self.processing_time_ms,
        }


def compute_stats(detections: list[Detection], processing_time_ms: float = 0.0) -> ScanStats:
    """Count detections per category and confidence band.

    The elapsed time is measured by the caller around the scan.
    """
    stats = ScanStats(total_detections=len(detections), processing_time_ms=processing_time_ms)
    for detection in detections:
        stats.by_category[detection.category] += 1
        stats.by_confidence[confidence_band(detection.confidence)] += 1
    return stats
