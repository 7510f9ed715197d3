"""Detection of user-supplied entities: company names, internal domains,
keywords, clients, projects and products.

Every literal is escaped and matched case-insensitively, never inside a
longer word.
Matches go through the same claim and placeholder machinery as built-in
rules, after them, with confidence 100.
"""

import logging
import re

from ..config import Config, NamedEntity
from .base import Category
from .state import ScanState

logger = logging.getLogger(__name__)

CUSTOM_CONFIDENCE = 100
INTERNAL_DOMAIN_CONFIDENCE = 95


def _word_pattern(literal: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(literal)}(?!\w)", re.IGNORECASE)


def _domain_pattern(domain: str) -> re.Pattern:
    """URLs containing the domain, or the domain itself with any subdomains."""
    escaped = re.escape(domain)
    return re.compile(
        rf"https?://[^\s]*{escaped}[^\s]*|\b(?:[a-zA-Z0-9-]+\.)*{escaped}\b",
        re.IGNORECASE,
    )


def _match_literal(
    state: ScanState,
    pattern: re.Pattern,
    *,
    id_prefix: str,
    category: Category,
    subcategory: str,
    confidence: int,
    template: str,
    placeholder_key: str | None = None,
) -> int:
    added = 0
    for m in pattern.finditer(state.text):
        start, end = m.span()
        detection = state.add(
            detection_id=f"{id_prefix}-{start}",
            start=start,
            end=end,
            category=category,
            subcategory=subcategory,
            confidence=confidence,
            template=template,
            source="custom",
            placeholder_key=placeholder_key,
            approved=state.auto_approve,
        )
        if detection is not None:
            added += 1
    return added


def _match_named(
    state: ScanState,
    entities: list[NamedEntity],
    *,
    subcategory: str,
    template: str,
) -> int:
    added = 0
    for entity in entities:
        for name in entity.names:
            added += _match_literal(
                state,
                _word_pattern(name),
                id_prefix=f"custom-{subcategory}",
                category=Category.CUSTOM,
                subcategory=subcategory,
                confidence=CUSTOM_CONFIDENCE,
                template=template,
                placeholder_key=entity.name,
            )
    return added


def detect_custom(state: ScanState, config: Config) -> int:
    """Run every configured custom entity against the scanned text.

    Each group is gated by its own category: company names are
    organizational, internal domains technical, the rest custom.
    """
    settings = config.detection_settings
    company = config.company_info
    custom = config.custom_entities
    added = 0

    if company.primary_name and settings.is_enabled(Category.ORGANIZATIONAL):
        for name in [company.primary_name, *company.aliases]:
            if not name:
                continue
            added += _match_literal(
                state,
                _word_pattern(name),
                id_prefix="company-name",
                category=Category.ORGANIZATIONAL,
                subcategory="company_name",
                confidence=CUSTOM_CONFIDENCE,
                template="<COMPANY_NAME_{n}>",
                placeholder_key=company.primary_name,
            )

    if settings.is_enabled(Category.TECHNICAL):
        domains = [d for d in [company.domain, *company.internal_domains] if d]
        for domain in dict.fromkeys(domains):
            added += _match_literal(
                state,
                _domain_pattern(domain),
                id_prefix="internal-url",
                category=Category.TECHNICAL,
                subcategory="internal_url",
                confidence=INTERNAL_DOMAIN_CONFIDENCE,
                template="<INTERNAL_URL_{n}>",
            )

    if settings.is_enabled(Category.CUSTOM):
        for keyword in custom.keywords:
            if not keyword:
                continue
            added += _match_literal(
                state,
                _word_pattern(keyword),
                id_prefix="custom-keyword",
                category=Category.CUSTOM,
                subcategory="keyword",
                confidence=CUSTOM_CONFIDENCE,
                template="<KEYWORD_{n}>",
            )
        added += _match_named(state, custom.clients, subcategory="client", template="<CLIENT_{n}>")
        added += _match_named(state, custom.projects, subcategory="project", template="<PROJECT_{n}>")
        added += _match_named(state, custom.products, subcategory="product", template="<PRODUCT_{n}>")

    if added:
        logger.debug("Custom entities: %d match(es)", added)
    return added
