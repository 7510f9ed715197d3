import asyncio
import functools
import json
import logging
import re
from typing import Protocol

from ..config import Config, NerSettings
from .base import Category, NerResult, NerSpan
from .state import ScanState

logger = logging.getLogger(__name__)

PERSON_CONFIDENCE = 75
ORGANIZATION_CONFIDENCE = 70


class EntityRecognizer(Protocol):
    """Anything that can find person and organization names in text."""

    async def extract_entities(self, text: str, custom_name_hints: list[str]) -> NerResult: ...


# ---------------------------------------------------------------------------
# Fusion of recognizer output into a scan
# ---------------------------------------------------------------------------


def _valid_span(span: NerSpan, text: str) -> bool:
    return 0 <= span.start < span.end <= len(text)


def fuse_ner(state: ScanState, result: NerResult, config: Config) -> int:
    """Add recognizer spans to a scan, after every pattern-based detection.

    Only the category switch applies; the confidence threshold filters
    rules, not recognizer output. NER output is never auto-approved and
    spans overlapping an earlier claim are dropped.
    """
    settings = config.detection_settings
    groups = [
        (result.persons, Category.PERSONAL, "person_name", PERSON_CONFIDENCE, "<PERSON_{n}>", "ner-person"),
        (
            result.organizations,
            Category.ORGANIZATIONAL,
            "organization",
            ORGANIZATION_CONFIDENCE,
            "<ORGANIZATION_{n}>",
            "ner-org",
        ),
    ]

    added = 0
    for spans, category, subcategory, confidence, template, id_prefix in groups:
        if not settings.is_enabled(category):
            continue
        for span in spans:
            if not _valid_span(span, state.text):
                logger.debug("Ignoring out-of-range NER span %r (%d-%d)", span.text, span.start, span.end)
                continue
            detection = state.add(
                detection_id=f"{id_prefix}-{span.start}",
                start=span.start,
                end=span.end,
                category=category,
                subcategory=subcategory,
                confidence=confidence,
                template=template,
                source="ner",
                approved=False,
            )
            if detection is not None:
                added += 1
    return added


async def run_recognizer(recognizer: EntityRecognizer, text: str, hints: list[str]) -> NerResult | None:
    """Await the recognizer; any failure means no NER augmentation for this scan."""
    try:
        result = await recognizer.extract_entities(text, hints)
    except Exception as exc:
        logger.warning("Entity recognition failed: %s", exc)
        logger.debug("Entity recognition traceback", exc_info=True)
        return None

    if not result.success:
        logger.warning("Entity recognition failed: %s", result.error or "unknown error")
        return None
    return result


# ---------------------------------------------------------------------------
# ONNX token-classification recognizer
# ---------------------------------------------------------------------------

# Model labels kept, and where they go in the result
_LABEL_GROUPS = {"PER": "persons", "ORG": "organizations"}


@functools.lru_cache(maxsize=1)
def _load_model(
    model_name: str,
    onnx_file: str = "model.onnx",
    tokenizer_file: str = "sentencepiece.bpe.model",
    id_offset: int | None = None,
):
    """Load the ONNX session and SentencePiece tokenizer on first use."""
    logger.info("Loading NER model '%s' (first run downloads ~1GB)...", model_name)
    import onnxruntime as ort
    import sentencepiece as spm
    from huggingface_hub import hf_hub_download

    model_path = hf_hub_download(repo_id=model_name, filename=onnx_file)
    config_path = hf_hub_download(repo_id=model_name, filename="config.json")
    spm_path = hf_hub_download(repo_id=model_name, filename=tokenizer_file)

    session = ort.InferenceSession(model_path, providers=["CPUExecutionProvider"])
    sp = spm.SentencePieceProcessor()
    sp.Load(spm_path)

    with open(config_path) as f:
        model_config = json.load(f)
    id2label = {int(k): v for k, v in model_config.get("id2label", {}).items()}

    bos_id = model_config.get("bos_token_id", sp.bos_id())
    eos_id = model_config.get("eos_token_id", sp.eos_id())
    # fairseq-style models put special tokens before the SentencePiece
    # vocabulary; without an explicit offset, derive it from the BOS ids.
    offset = id_offset if id_offset is not None else bos_id - sp.bos_id()

    logger.info("NER model loaded.")
    return session, sp, id2label, bos_id, eos_id, offset


def _char_offsets(text: str) -> list[int]:
    """Character index for each UTF-8 byte offset of text, plus its end."""
    table: list[int] = []
    for i, ch in enumerate(text):
        table.extend([i] * len(ch.encode("utf-8")))
    table.append(len(text))
    return table


def _encode_window(sp, text: str, bos_id: int, eos_id: int, offset: int, max_length: int):
    """Token ids, character offsets and special-token flags for one window.

    SentencePiece reports piece boundaries in UTF-8 bytes; they are mapped
    back to character offsets so spans slice the str correctly.
    """
    pieces = list(sp.encode(text, return_type="proto").pieces)
    to_char = _char_offsets(text)

    ids = [bos_id] + [p.id + offset for p in pieces] + [eos_id]
    char_spans = [(0, 0)] + [(to_char[p.begin], to_char[p.end]) for p in pieces] + [(0, 0)]
    special = [True] + [False] * len(pieces) + [True]

    if len(ids) > max_length:
        ids = ids[: max_length - 1] + [eos_id]
        char_spans = char_spans[: max_length - 1] + [(0, 0)]
        special = special[: max_length - 1] + [True]
    return ids, char_spans, special


def _merge_bio(labels: list[str], scores: list[float], char_spans, special) -> list[dict]:
    """Group BIO-tagged tokens into entity dicts (label/start/end/score)."""
    entities: list[dict] = []
    current: dict | None = None

    def close() -> None:
        nonlocal current
        if current is not None:
            token_scores = current.pop("scores")
            current["score"] = sum(token_scores) / len(token_scores)
            entities.append(current)
            current = None

    for label, score, (char_start, char_end), is_special in zip(  # noqa: B905
        labels, scores, char_spans, special
    ):
        if is_special or label == "O":
            close()
            continue

        prefix, _, entity_label = label.partition("-")
        continues = prefix == "I" and current is not None and current["label"] == entity_label
        if continues:
            current["end"] = char_end
            current["scores"].append(score)
        else:
            close()
            current = {"label": entity_label or prefix, "start": char_start, "end": char_end, "scores": [score]}

    close()
    return entities


def _run_window(session, sp, id2label, text, bos_id, eos_id, offset, max_length: int = 512) -> list[dict]:
    """Run the model over one window of text."""
    import numpy as np

    ids, char_spans, special = _encode_window(sp, text, bos_id, eos_id, offset, max_length)

    input_ids = np.array([ids], dtype=np.int64)
    inputs = {"input_ids": input_ids, "attention_mask": np.ones_like(input_ids)}
    if "token_type_ids" in {inp.name for inp in session.get_inputs()}:
        inputs["token_type_ids"] = np.zeros_like(input_ids)

    logits = session.run(None, inputs)[0][0].astype(np.float32)
    exp = np.exp(logits - logits.max(axis=-1, keepdims=True))
    probs = exp / exp.sum(axis=-1, keepdims=True)

    labels = [id2label.get(i, "O") for i in probs.argmax(axis=-1).tolist()]
    scores = probs.max(axis=-1).tolist()
    return _merge_bio(labels, scores, char_spans, special)


def _trim(text: str, start: int, end: int) -> tuple[int, int]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def find_name_hints(text: str, hints: list[str]) -> list[NerSpan]:
    """Whole-word, case-insensitive occurrences of known person names."""
    spans = []
    unique = {h.strip().casefold(): h.strip() for h in hints if h and h.strip()}
    for hint in unique.values():
        for m in re.finditer(rf"(?<!\w){re.escape(hint)}(?!\w)", text, re.IGNORECASE):
            spans.append(NerSpan(text=m.group(), start=m.start(), end=m.end()))
    return spans


class OnnxEntityRecognizer:
    """Person/organization recognizer backed by an ONNX token-classification model.

    Long texts are processed in overlapping windows; spans found twice in the
    overlap are kept once.
    """

    def __init__(self, settings: NerSettings | None = None) -> None:
        self.settings = settings or NerSettings()

    def detect(self, text: str, custom_name_hints: list[str] | None = None) -> NerResult:
        if not text.strip():
            return NerResult(success=True)

        s = self.settings
        session, sp, id2label, bos_id, eos_id, offset = _load_model(
            s.model_name, s.onnx_file, s.tokenizer_file, s.id_offset
        )
        result = NerResult(success=True)
        seen: set[tuple[int, int, str]] = set()

        step = max(1, s.window_size - s.window_overlap)
        for window_start in range(0, len(text), step):
            window_text = text[window_start : window_start + s.window_size]
            if not window_text.strip():
                continue

            for ent in _run_window(session, sp, id2label, window_text, bos_id, eos_id, offset):
                group = _LABEL_GROUPS.get(ent["label"])
                if group is None or ent["score"] < s.confidence_threshold:
                    continue

                start, end = _trim(text, window_start + ent["start"], window_start + ent["end"])
                key = (start, end, ent["label"])
                if start >= end or key in seen:
                    continue
                seen.add(key)
                getattr(result, group).append(NerSpan(text=text[start:end], start=start, end=end))

        result.persons.extend(find_name_hints(text, custom_name_hints or []))
        return result

    async def extract_entities(self, text: str, custom_name_hints: list[str]) -> NerResult:
        """Non-blocking entry point: inference runs in a worker thread."""
        try:
            return await asyncio.to_thread(self.detect, text, custom_name_hints)
        except Exception as exc:
            logger.debug("NER inference failed", exc_info=True)
            return NerResult(success=False, error=str(exc))
