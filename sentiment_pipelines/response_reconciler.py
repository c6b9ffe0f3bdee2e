from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Callable, Mapping, Optional, Sequence

from sentiment_pipelines.sentiment_types import Entity, SentimentResult
from sentiment_pipelines.text_processor import NormalizeOptions, extract_top_phrases, normalize

logger = logging.getLogger(__name__)

JSON_START = "JSON_START"
JSON_END = "JSON_END"

MAX_TOP_PHRASES = 5
MIN_MODEL_PHRASES = 3
PARSE_FALLBACK_PHRASE_CHARS = 50

DEFAULT_SCORE = 0.0
DEFAULT_MAGNITUDE = 0.5
DEFAULT_CATEGORIES = ("general",)

# Greedy on purpose: first "{" to last "}" of the whole reply.
_BRACE_SPAN_RE = re.compile(r"\{[\s\S]*\}")
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

POSITIVE_RE = re.compile(
    r"\b(?:good|great|excellent|amazing|wonderful|fantastic|awesome|love|like|happy|"
    r"pleased|satisfied|perfect|brilliant|outstanding|superb|magnificent|delighted|"
    r"thrilled|excited|grateful|thankful|appreciate|recommend|best|beautiful|"
    r"incredible|impressive|remarkable|exceptional|marvelous|splendid)\b",
    re.IGNORECASE,
)
NEGATIVE_RE = re.compile(
    r"\b(?:bad|terrible|awful|horrible|hate|dislike|angry|frustrated|disappointed|sad|"
    r"upset|annoyed|disgusted|furious|outraged|devastated|heartbroken|miserable|"
    r"depressed|worried|concerned|troubled|bothered|irritated|worst|useless|"
    r"worthless|pathetic|ridiculous|stupid|idiotic|nonsense|garbage)\b",
    re.IGNORECASE,
)

# Token fallback when neither the model nor the phrase extractor found phrases.
FALLBACK_TOKEN_OPTIONS = NormalizeOptions(apply_stemming=False, min_word_length=4)


# -------------------------
# Candidate location
# -------------------------


def extract_brace_span(raw: str) -> Optional[str]:
    m = _BRACE_SPAN_RE.search(raw)
    return m.group(0) if m else None


def extract_marker_span(raw: str) -> Optional[str]:
    """Content between JSON_START and JSON_END, wrapped in braces if needed."""
    start = raw.find(JSON_START)
    if start == -1:
        return None
    start += len(JSON_START)
    end = raw.find(JSON_END, start)
    if end == -1:
        return None

    inner = raw[start:end].strip()
    if not inner.startswith("{"):
        inner = "{" + inner
    if not inner.endswith("}"):
        inner = inner + "}"
    return inner


def heuristic_sentiment(text: str) -> dict[str, Any]:
    """
    Keyword polarity guess on the original text.

    positive only -> 0.5, negative only -> -0.5, otherwise 0.
    """
    has_positive = bool(POSITIVE_RE.search(text))
    has_negative = bool(NEGATIVE_RE.search(text))

    score = 0.0
    if has_positive and not has_negative:
        score = 0.5
    elif has_negative and not has_positive:
        score = -0.5

    return {
        "score": score,
        "magnitude": DEFAULT_MAGNITUDE,
        "categories": list(DEFAULT_CATEGORIES),
        "topPhrases": text.split()[:MAX_TOP_PHRASES],
        "entities": [],
    }


Locator = Callable[[str], Optional[str]]

CANDIDATE_LOCATORS: tuple[Locator, ...] = (extract_brace_span, extract_marker_span)


def locate_candidate(raw: str, text: str) -> str:
    """Run the locators in order; the keyword heuristic is the last resort."""
    for locate in CANDIDATE_LOCATORS:
        candidate = locate(raw)
        if candidate is not None:
            return candidate

    logger.warning("No JSON in model reply; using keyword heuristic: reply_len=%s", len(raw))
    return json.dumps(heuristic_sentiment(text))


# -------------------------
# Sanitize / parse
# -------------------------


def sanitize(candidate: str) -> str:
    """Drop code fences and backticks, collapse whitespace, force outer braces."""
    cleaned = _FENCE_RE.sub("", candidate).replace("`", "")
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    if not cleaned.startswith("{"):
        cleaned = "{" + cleaned
    if not cleaned.endswith("}"):
        cleaned = cleaned + "}"
    return cleaned


def parse_candidate(candidate: str) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(candidate)
    except ValueError as e:
        logger.warning("Model JSON did not parse: err=%s", e)
        return None
    if not isinstance(data, dict):
        return None
    return data


# -------------------------
# Validation / augmentation
# -------------------------


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _as_strings(value: Sequence[Any]) -> list[str]:
    out: list[str] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            continue
        s = str(item).strip()
        if s:
            out.append(s)
    return out


def _as_entities(value: Sequence[Any]) -> list[Entity]:
    out: list[Entity] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        sentiment = _as_number(item.get("sentiment"))
        out.append(
            Entity(
                name=name.strip(),
                sentiment=clamp(sentiment, -1.0, 1.0) if sentiment is not None else 0.0,
            )
        )
    return out


def validate_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Type-check each field of a parsed reply, substituting defaults.

    Ranges are not checked here; see clamp().
    """
    score = _as_number(data.get("score"))
    magnitude = _as_number(data.get("magnitude"))

    categories_raw = data.get("categories")
    categories = _as_strings(categories_raw) if isinstance(categories_raw, list) else []

    phrases_raw = data.get("topPhrases")
    phrases = _as_strings(phrases_raw) if isinstance(phrases_raw, list) else []

    entities_raw = data.get("entities")
    entities = _as_entities(entities_raw) if isinstance(entities_raw, list) else []

    return {
        "score": DEFAULT_SCORE if score is None else score,
        "magnitude": DEFAULT_MAGNITUDE if magnitude is None else magnitude,
        "categories": categories or list(DEFAULT_CATEGORIES),
        "top_phrases": list(dict.fromkeys(phrases)),
        "entities": entities,
    }


def augment_phrases(phrases: Sequence[str], text: str) -> list[str]:
    """
    Top up weak model phrases from the original text.

    Fewer than MIN_MODEL_PHRASES -> append extracted phrases. Still empty ->
    first unstemmed tokens of the text. Always unique and capped.
    """
    merged = list(dict.fromkeys(phrases))
    if len(merged) < MIN_MODEL_PHRASES:
        merged = list(dict.fromkeys(merged + extract_top_phrases(text)))
    merged = merged[:MAX_TOP_PHRASES]

    if not merged:
        logger.warning("No phrases from model or extractor; using normalized tokens")
        merged = normalize(text, FALLBACK_TOKEN_OPTIONS)[:MAX_TOP_PHRASES]
    return merged


# -------------------------
# Fallback results
# -------------------------


def parse_fallback(text: str) -> SentimentResult:
    """Neutral result used when the located JSON cannot be parsed."""
    return SentimentResult(
        text=text,
        score=DEFAULT_SCORE,
        magnitude=DEFAULT_MAGNITUDE,
        categories=DEFAULT_CATEGORIES,
        top_phrases=(text[:PARSE_FALLBACK_PHRASE_CHARS],) if text else (),
        entities=(),
    )


def terminal_fallback(text: Any) -> SentimentResult:
    """Last-resort result; recognizable by categories == ("error",)."""
    return SentimentResult(
        text=_as_text(text),
        score=0.0,
        magnitude=DEFAULT_MAGNITUDE,
        categories=("error",),
        top_phrases=("Analysis failed",),
        entities=(),
    )


def _as_text(text: Any) -> str:
    if isinstance(text, str):
        return text
    if text is None:
        return ""
    try:
        return str(text)
    except Exception as e:
        logger.warning("Input text not convertible to str: type=%s err=%s", type(text).__name__, e)
        return ""


# -------------------------
# Entry point
# -------------------------


def reconcile(raw_model_text: Any, original_text: Any) -> SentimentResult:
    """
    Turn a free-form model reply into a validated SentimentResult.

    Pipeline: locate (brace span -> markers -> heuristic) -> sanitize ->
    parse -> validate -> augment phrases -> clamp. Never raises.
    """
    text = _as_text(original_text)
    try:
        candidate = locate_candidate(raw_model_text, text)
        data = parse_candidate(sanitize(candidate))
        if data is None:
            return parse_fallback(text)

        fields = validate_fields(data)
        phrases = augment_phrases(fields["top_phrases"], text)

        return SentimentResult(
            text=text,
            score=clamp(fields["score"], -1.0, 1.0),
            magnitude=clamp(fields["magnitude"], 0.0, 1.0),
            categories=tuple(fields["categories"]),
            top_phrases=tuple(phrases),
            entities=tuple(fields["entities"]),
        )
    except Exception:
        logger.exception("Reconciliation failed; returning terminal fallback")
        return terminal_fallback(text)
