import asyncio
import logging

from ..config import Config
from .base import Category, Detection
from .custom_detector import detect_custom
from .ner_detector import EntityRecognizer, fuse_ner, run_recognizer
from .regex_detector import detect_rules
from .rules import BUILTIN_RULES, DetectionRule, applicable_rules
from .state import ScanState

logger = logging.getLogger(__name__)

# Shorter inputs are not worth scanning
MIN_TEXT_LENGTH = 3


class ScanEngine:
    """Detects sensitive spans in text according to a Config.

    The engine itself holds no per-document state: every call to scan()
    starts from a fresh ScanState, so placeholder numbering and claimed
    spans never leak from one document to the next.
    """

    def __init__(
        self,
        config: Config,
        recognizer: EntityRecognizer | None = None,
        rules: tuple[DetectionRule, ...] = BUILTIN_RULES,
    ) -> None:
        self.config = config
        self.recognizer = recognizer
        settings = config.detection_settings
        self.rules = applicable_rules(
            settings.categories_enabled,
            settings.min_confidence,
            settings.disabled_rules,
            rules,
        )

    def _detect_patterns(self, state: ScanState) -> None:
        detect_rules(state, self.rules)
        detect_custom(state, self.config)

    async def scan(self, text: str) -> list[Detection]:
        """Return non-overlapping detections sorted by start offset."""
        if len(text.strip()) < MIN_TEXT_LENGTH:
            return []

        settings = self.config.detection_settings
        state = ScanState(text, auto_approve=settings.auto_approve_high_confidence)
        self._detect_patterns(state)

        if self.recognizer is not None and settings.is_enabled(Category.PERSONAL):
            result = await run_recognizer(self.recognizer, text, self.config.custom_entities.names)
            if result is not None:
                fuse_ner(state, result, self.config)

        detections = state.sorted_detections()
        logger.debug("Scan found %d detection(s) in %d characters", len(detections), len(text))
        return detections


async def scan(text: str, config: Config, recognizer: EntityRecognizer | None = None) -> list[Detection]:
    """Scan text with a fresh engine."""
    return await ScanEngine(config, recognizer).scan(text)


def scan_sync(text: str, config: Config, recognizer: EntityRecognizer | None = None) -> list[Detection]:
    """Blocking wrapper around scan() for callers without an event loop."""
    return asyncio.run(scan(text, config, recognizer))
