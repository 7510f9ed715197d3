"""Built-in detection rules.

Rules are tried in registry order and the first rule to claim a span keeps it,
so specific and region-tuned patterns are listed before generic ones.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from .base import Category
from .validators import email_check, iban_check, ipv4_check, luhn_check


class Validator(Enum):
    LUHN = "luhn"
    IBAN = "iban"
    EMAIL = "email"
    IPV4 = "ipv4"


VALIDATORS: dict[Validator, Callable[[str], bool]] = {
    Validator.LUHN: luhn_check,
    Validator.IBAN: iban_check,
    Validator.EMAIL: email_check,
    Validator.IPV4: ipv4_check,
}


@dataclass(frozen=True)
class DetectionRule:
    id: str
    name: str
    category: Category
    subcategory: str
    pattern: re.Pattern
    confidence: int
    placeholder_template: str  # Contains one "{n}" ordinal slot
    validator: Validator | None = None

    def validate(self, text: str) -> bool:
        if self.validator is None:
            return True
        return VALIDATORS[self.validator](text)


def _rule(
    rule_id: str,
    name: str,
    category: Category,
    subcategory: str,
    pattern: str,
    confidence: int,
    template: str,
    validator: Validator | None = None,
    flags: int = 0,
) -> DetectionRule:
    return DetectionRule(
        id=rule_id,
        name=name,
        category=category,
        subcategory=subcategory,
        pattern=re.compile(pattern, flags),
        confidence=confidence,
        placeholder_template=template,
        validator=validator,
    )


_STREET_TYPES = (
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|Court|Ct"
    r"|Place|Pl|Circle|Cir)"
)

_MONTHS = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

_CURRENCY_CODES = r"(?:SAR|USD|EUR|GBP|AED|KWD|BHD|OMR|QAR)"

BUILTIN_RULES: tuple[DetectionRule, ...] = (
    # --- Technical: secrets and credentials ---
    _rule(
        "tech-private-key",
        "Private Key",
        Category.TECHNICAL,
        "credentials",
        r"-----BEGIN (?:RSA |DSA |EC |OPENSSH |ENCRYPTED )?PRIVATE KEY-----",
        100,
        "<PRIVATE_KEY_{n}>",
    ),
    _rule(
        "tech-db-connection",
        "Database Connection String",
        Category.TECHNICAL,
        "connection_string",
        r"\b(?:postgres(?:ql)?|mysql|mariadb|mongodb(?:\+srv)?|redis|mssql|sqlserver|amqp)://[^\s'\"<>]+",
        95,
        "<DB_CONNECTION_{n}>",
    ),
    _rule(
        "tech-url-creds",
        "URL with Credentials",
        Category.TECHNICAL,
        "credentials",
        r"https?://[^\s:/@]+:[^\s@/]+@[^\s]+",
        95,
        "<CREDENTIAL_URL_{n}>",
    ),
    _rule(
        "pii-email",
        "Email Address",
        Category.PERSONAL,
        "email",
        r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
        95,
        "<EMAIL_{n}>",
        Validator.EMAIL,
    ),
    _rule(
        "tech-jwt",
        "JSON Web Token",
        Category.TECHNICAL,
        "token",
        r"\beyJ[A-Za-z0-9_-]{5,}\.eyJ[A-Za-z0-9_-]{5,}\.[A-Za-z0-9_-]+",
        95,
        "<TOKEN_{n}>",
    ),
    _rule(
        "tech-aws-key",
        "AWS Access Key",
        Category.TECHNICAL,
        "api_key",
        r"\b(?:AKIA|ABIA|ACCA|ASIA)[A-Z0-9]{16}\b",
        95,
        "<AWS_KEY_{n}>",
    ),
    _rule(
        "tech-github-token",
        "GitHub Token",
        Category.TECHNICAL,
        "api_key",
        r"\bgh[pousr]_[A-Za-z0-9]{36,255}\b",
        95,
        "<API_KEY_{n}>",
    ),
    _rule(
        "tech-slack-token",
        "Slack Token",
        Category.TECHNICAL,
        "api_key",
        r"\bxox[abprs]-[A-Za-z0-9-]{10,}",
        95,
        "<API_KEY_{n}>",
    ),
    _rule(
        "tech-google-api-key",
        "Google API Key",
        Category.TECHNICAL,
        "api_key",
        r"\bAIza[0-9A-Za-z_-]{35}",
        95,
        "<API_KEY_{n}>",
    ),
    _rule(
        "tech-stripe-key",
        "Stripe Key",
        Category.TECHNICAL,
        "api_key",
        r"\b(?:sk|pk|rk)_(?:live|test)_[A-Za-z0-9]{16,}\b",
        95,
        "<API_KEY_{n}>",
    ),
    _rule(
        "tech-bearer-token",
        "OAuth Bearer Token",
        Category.TECHNICAL,
        "token",
        r"\bBearer\s+[A-Za-z0-9._~+/-]{20,}=*",
        90,
        "<TOKEN_{n}>",
    ),
    _rule(
        "tech-api-key",
        "API Key",
        Category.TECHNICAL,
        "api_key",
        r"(?:api[_-]?key|apikey|api[_-]?secret|secret[_-]?key|access[_-]?token|auth[_-]?token)"
        r"[=:\s]+[\"']?[a-zA-Z0-9_-]{20,}[\"']?",
        90,
        "<API_KEY_{n}>",
        flags=re.IGNORECASE,
    ),
    # --- Technical: identifiers and addresses ---
    _rule(
        "tech-uuid",
        "UUID",
        Category.TECHNICAL,
        "uuid",
        r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b",
        80,
        "<UUID_{n}>",
    ),
    _rule(
        "tech-ipv6",
        "IPv6 Address",
        Category.TECHNICAL,
        "ip_address",
        r"\b(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}\b",
        95,
        "<IP_ADDRESS_{n}>",
    ),
    _rule(
        "tech-mac",
        "MAC Address",
        Category.TECHNICAL,
        "mac_address",
        r"\b(?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}\b",
        85,
        "<MAC_ADDRESS_{n}>",
    ),
    _rule(
        "tech-ipv4",
        "IPv4 Address",
        Category.TECHNICAL,
        "ip_address",
        r"(?<![\d.])\b(?:\d{1,3}\.){3}\d{1,3}\b(?!\.\d)",
        95,
        "<IP_ADDRESS_{n}>",
        Validator.IPV4,
    ),
    # --- Financial ---
    _rule(
        "fin-saudi-iban",
        "Saudi IBAN",
        Category.FINANCIAL,
        "iban",
        r"\bSA\d{2}[A-Z0-9]{20}\b",
        95,
        "<IBAN_{n}>",
        Validator.IBAN,
    ),
    _rule(
        "fin-iban",
        "IBAN",
        Category.FINANCIAL,
        "iban",
        r"\b[A-Z]{2}\d{2}(?: ?[A-Z0-9]{4}){2,7}(?: ?[A-Z0-9]{1,3})?\b",
        90,
        "<IBAN_{n}>",
        Validator.IBAN,
    ),
    _rule(
        "fin-credit-card",
        "Credit Card Number",
        Category.FINANCIAL,
        "credit_card",
        r"\b3[47]\d{2}[- ]?\d{6}[- ]?\d{5}\b|\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{1,7}\b",
        85,
        "<CARD_NUMBER_{n}>",
        Validator.LUHN,
    ),
    _rule(
        "fin-account",
        "Account Number",
        Category.FINANCIAL,
        "account",
        r"\b(?:account|acct|a/c)(?:\s*(?:no\.?|number))?[#:\s]*\d{6,20}\b",
        85,
        "<ACCOUNT_{n}>",
        flags=re.IGNORECASE,
    ),
    _rule(
        "fin-currency",
        "Currency Amount",
        Category.FINANCIAL,
        "amount",
        rf"(?:[$€£¥₹]|\b{_CURRENCY_CODES}\b)\s*\d[\d,]*(?:\.\d{{1,2}})?"
        rf"|\b\d[\d,]*(?:\.\d{{1,2}})?\s*(?:dollars?|euros?|pounds?|riyals?|dirhams?|{_CURRENCY_CODES})\b",
        80,
        "<AMOUNT_{n}>",
        flags=re.IGNORECASE,
    ),
    # --- Personal ---
    _rule(
        "pii-ssn",
        "Social Security Number",
        Category.PERSONAL,
        "ssn",
        r"\b\d{3}-\d{2}-\d{4}\b",
        95,
        "<SSN_{n}>",
    ),
    _rule(
        "pii-saudi-phone",
        "Saudi Phone Number",
        Category.PERSONAL,
        "phone",
        r"(?<![\d+])(?:\+966|00966|0)?5\d{8}(?!\d)",
        90,
        "<PHONE_{n}>",
    ),
    _rule(
        "pii-national-id",
        "Saudi National ID",
        Category.PERSONAL,
        "national_id",
        r"\b1\d{9}\b",
        85,
        "<NATIONAL_ID_{n}>",
    ),
    _rule(
        "pii-iqama",
        "Iqama (Resident ID)",
        Category.PERSONAL,
        "resident_id",
        r"\b2\d{9}\b",
        80,
        "<IQAMA_{n}>",
    ),
    _rule(
        "pii-driver-license",
        "Driver License",
        Category.PERSONAL,
        "driver_license",
        r"\b(?:driver'?s?\s+licen[cs]e|DL)(?:\s*(?:no\.?|number))?[#:\s]+[A-Z0-9-]{5,15}\b",
        80,
        "<DRIVER_LICENSE_{n}>",
        flags=re.IGNORECASE,
    ),
    _rule(
        "pii-passport",
        "Passport Number",
        Category.PERSONAL,
        "passport",
        r"\b[A-Z]{1,2}\d{6,9}\b",
        70,
        "<PASSPORT_{n}>",
    ),
    _rule(
        "pii-date-numeric",
        "Date (Numeric)",
        Category.PERSONAL,
        "date",
        r"\b(?:\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})\b",
        70,
        "<DATE_{n}>",
    ),
    _rule(
        "pii-date-text",
        "Date (Text)",
        Category.PERSONAL,
        "date",
        rf"\b{_MONTHS}[.\s]+\d{{1,2}}(?:st|nd|rd|th)?[,\s]+\d{{4}}\b",
        75,
        "<DATE_{n}>",
        flags=re.IGNORECASE,
    ),
    _rule(
        "pii-street-address",
        "Street Address",
        Category.PERSONAL,
        "address",
        rf"\b\d{{1,6}}\s+[A-Za-z]+(?:\s+[A-Za-z]+){{0,4}}\s+{_STREET_TYPES}\b\.?"
        r"(?:\s*,?\s*(?:Suite|Ste|Apt|Apartment|Unit|#)\s*\d+)?",
        75,
        "<ADDRESS_{n}>",
        flags=re.IGNORECASE,
    ),
    _rule(
        "pii-po-box",
        "PO Box",
        Category.PERSONAL,
        "address",
        r"\bP\.?\s?O\.?\s*Box\s*\d+",
        80,
        "<ADDRESS_{n}>",
        flags=re.IGNORECASE,
    ),
    _rule(
        "pii-city-state-zip",
        "City, State ZIP",
        Category.PERSONAL,
        "address",
        r"\b[A-Z][a-z]+(?: [A-Z][a-z]+)?,\s*[A-Z]{2}\s+\d{5}(?:-\d{4})?\b",
        75,
        "<ADDRESS_{n}>",
    ),
    _rule(
        "pii-zip",
        "ZIP+4 Code",
        Category.PERSONAL,
        "zip",
        r"\b\d{5}-\d{4}\b",
        70,
        "<ZIP_{n}>",
    ),
    _rule(
        "pii-phone-intl",
        "Phone Number (International)",
        Category.PERSONAL,
        "phone",
        r"(?<![\w+])(?:\+?[1-9]\d{0,2}[-.\s]?)?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{3,4}(?!\d)",
        80,
        "<PHONE_{n}>",
    ),
    # --- Financial, low confidence ---
    _rule(
        "fin-large-number",
        "Large Number",
        Category.FINANCIAL,
        "amount",
        r"\b\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?\b",
        60,
        "<NUMBER_{n}>",
    ),
    _rule(
        "fin-percentage",
        "Percentage",
        Category.FINANCIAL,
        "percentage",
        r"\b\d+(?:\.\d+)?%",
        50,
        "<PERCENTAGE_{n}>",
    ),
)


def get_rule(rule_id: str) -> DetectionRule | None:
    for rule in BUILTIN_RULES:
        if rule.id == rule_id:
            return rule
    return None


def applicable_rules(
    categories: Iterable[Category],
    min_confidence: int,
    disabled: Iterable[str] = (),
    rules: Iterable[DetectionRule] = BUILTIN_RULES,
) -> list[DetectionRule]:
    """Select the rules a scan should run, keeping registry order."""
    enabled = set(categories)
    skipped = set(disabled)
    return [
        rule
        for rule in rules
        if rule.category in enabled and rule.confidence >= min_confidence and rule.id not in skipped
    ]
