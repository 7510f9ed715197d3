import logging

from .rules import DetectionRule
from .state import ScanState

logger = logging.getLogger(__name__)


def detect_rule(state: ScanState, rule: DetectionRule) -> int:
    """Apply one rule to the scanned text. Returns the number of detections added."""
    added = 0
    for m in rule.pattern.finditer(state.text):
        start, end = m.span()
        if start == end or state.is_claimed(start, end):
            continue
        if not rule.validate(m.group()):
            logger.debug("%s: %r failed %s validation", rule.id, m.group(), rule.validator.value)
            continue

        detection = state.add(
            detection_id=f"{rule.id}-{start}",
            start=start,
            end=end,
            category=rule.category,
            subcategory=rule.subcategory,
            confidence=rule.confidence,
            template=rule.placeholder_template,
            source="rule",
        )
        if detection is not None:
            added += 1
    return added


def detect_rules(state: ScanState, rules: list[DetectionRule]) -> int:
    """Run rules in order; earlier rules keep the spans they claim."""
    total = 0
    for rule in rules:
        count = detect_rule(state, rule)
        if count:
            logger.debug("%s: %d match(es)", rule.id, count)
        total += count
    return total
