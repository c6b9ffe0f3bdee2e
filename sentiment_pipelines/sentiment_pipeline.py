from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol, Sequence

from sentiment_pipelines.response_reconciler import reconcile, terminal_fallback
from sentiment_pipelines.sentiment_types import SentimentResult

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
Analyze the sentiment of the following text and provide a detailed breakdown.
Return ONLY a valid JSON object, with no markdown and no extra prose, using this structure:

{{
  "score": (number between -1 and 1, where -1 is very negative, 0 is neutral, and 1 is very positive),
  "magnitude": (number between 0 and 1 indicating the strength of emotion),
  "categories": [array of topic categories present in the text],
  "topPhrases": [array of up to 5 most significant phrases],
  "entities": [array of objects with "name" and "sentiment" properties for entities mentioned]
}}

Text to analyze: {text}
"""


class ModelClient(Protocol):
    def invoke(self, prompt: str) -> str: ...


def build_prompt(text: Any) -> str:
    """Embed text in PROMPT_TEMPLATE. None becomes an empty string."""
    return PROMPT_TEMPLATE.format(text="" if text is None else text)


class SentimentAnalyzer:
    """
    Text -> model call -> reconciled SentimentResult.

    - analyze never raises; transport failures become the terminal fallback
    - analyze_many fans out one model call per text, keeps input order
    """

    def __init__(self, client: ModelClient, max_workers: int = 8):
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._client = client
        self._max_workers = max_workers

    def analyze(self, text: str) -> SentimentResult:
        if not isinstance(text, str) or not text.strip():
            # Still sent to the model; the reconciler copes with whatever comes back.
            logger.warning("Analyzing empty or non-string input: type=%s", type(text).__name__)

        try:
            raw = self._client.invoke(build_prompt(text))
        except Exception as e:
            logger.error("Model call failed; returning terminal fallback: err=%s", e)
            return terminal_fallback(text)

        return reconcile(raw, text)

    def analyze_many(self, texts: Sequence[str]) -> list[SentimentResult]:
        """
        Analyze a batch of texts concurrently.

        - Does not mutate input
        - Keeps ordering
        """
        if not texts:
            return []

        workers = min(self._max_workers, len(texts))
        logger.info("Analyzing batch: size=%s workers=%s", len(texts), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.analyze, texts))
