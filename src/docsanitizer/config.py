import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .detectors.base import Category

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("same", "txt", "md")


@dataclass
class NamedEntity:
    name: str
    aliases: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [n for n in [self.name, *self.aliases] if n]


@dataclass
class CompanyInfo:
    primary_name: str = ""
    aliases: list[str] = field(default_factory=list)
    domain: str = ""
    internal_domains: list[str] = field(default_factory=list)


@dataclass
class CustomEntities:
    clients: list[NamedEntity] = field(default_factory=list)
    projects: list[NamedEntity] = field(default_factory=list)
    products: list[NamedEntity] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    # Person names handed to the entity recognizer as hints
    names: list[str] = field(default_factory=list)


@dataclass
class DetectionSettings:
    min_confidence: int = 70
    auto_approve_high_confidence: bool = True
    categories_enabled: set[Category] = field(default_factory=lambda: set(Category))
    # Rule ids switched off individually (e.g. "fin-percentage")
    disabled_rules: set[str] = field(default_factory=set)

    def is_enabled(self, category: Category) -> bool:
        return category in self.categories_enabled


@dataclass
class ExportPreferences:
    include_mapping_file: bool = True
    default_format: str = "same"


@dataclass
class NerSettings:
    enabled: bool = True
    # Multilingual (English, Arabic, French...) XLM-R token classifier
    model_name: str = "Davlan/xlm-roberta-base-ner-hrl"
    onnx_file: str = "onnx/model.onnx"
    tokenizer_file: str = "sentencepiece.bpe.model"
    # XLM-R shifts SentencePiece ids by one; None derives it from the BOS ids
    id_offset: int | None = 1
    confidence_threshold: float = 0.7
    window_size: int = 2000
    window_overlap: int = 200


@dataclass
class Config:
    company_info: CompanyInfo = field(default_factory=CompanyInfo)
    custom_entities: CustomEntities = field(default_factory=CustomEntities)
    detection_settings: DetectionSettings = field(default_factory=DetectionSettings)
    export_preferences: ExportPreferences = field(default_factory=ExportPreferences)
    ner: NerSettings = field(default_factory=NerSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a Config from a JSON-shaped dict; missing keys keep their defaults."""
        company = data.get("company_info", {})
        custom = data.get("custom_entities", {})
        settings = data.get("detection_settings", {})
        export = data.get("export_preferences", {})
        ner = data.get("ner", {})

        detection_settings = DetectionSettings(
            min_confidence=int(settings.get("min_confidence", 70)),
            auto_approve_high_confidence=bool(settings.get("auto_approve_high_confidence", True)),
            disabled_rules=set(settings.get("disabled_rules", [])),
        )
        if "categories_enabled" in settings:
            detection_settings.categories_enabled = {Category(c) for c in settings["categories_enabled"]}

        default_format = export.get("default_format", "same")
        if default_format not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format '{default_format}', expected one of {EXPORT_FORMATS}")

        return cls(
            company_info=CompanyInfo(
                primary_name=company.get("primary_name", ""),
                aliases=list(company.get("aliases", [])),
                domain=company.get("domain", ""),
                internal_domains=list(company.get("internal_domains", [])),
            ),
            custom_entities=CustomEntities(
                clients=_named_entities(custom.get("clients", [])),
                projects=_named_entities(custom.get("projects", [])),
                products=_named_entities(custom.get("products", [])),
                keywords=list(custom.get("keywords", [])),
                names=list(custom.get("names", [])),
            ),
            detection_settings=detection_settings,
            export_preferences=ExportPreferences(
                include_mapping_file=bool(export.get("include_mapping_file", True)),
                default_format=default_format,
            ),
            ner=NerSettings(**{k: v for k, v in ner.items() if k in NerSettings.__dataclass_fields__}),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        settings = data["detection_settings"]
        settings["categories_enabled"] = sorted(c.value for c in self.detection_settings.categories_enabled)
        settings["disabled_rules"] = sorted(self.detection_settings.disabled_rules)
        return data


def _named_entities(items: list[Any]) -> list[NamedEntity]:
    """Accept either bare names or {"name": ..., "aliases": [...]} objects."""
    entities = []
    for item in items:
        if isinstance(item, str):
            entities.append(NamedEntity(name=item))
        else:
            entities.append(NamedEntity(name=item.get("name", ""), aliases=list(item.get("aliases", []))))
    return entities


def load_config(path: Path) -> Config:
    """Load a Config from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    logger.debug("Loaded configuration from %s", path)
    return Config.from_dict(data)
