from __future__ import annotations

import json
import logging
import sys

from sentiment_pipelines.llm_client import OpenRouterClient
from sentiment_pipelines.sentiment_pipeline import SentimentAnalyzer
from sentiment_pipelines.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def read_texts(argv: list[str]) -> list[str]:
    """Texts from arguments, else one per non-empty stdin line."""
    if argv:
        return list(argv)
    return [ln.strip() for ln in sys.stdin if ln.strip()]


def main() -> None:
    s = load_settings()

    texts = read_texts(sys.argv[1:])
    logger.info("Read texts: %s", len(texts))
    if not texts:
        print("[]")
        return

    analyzer = SentimentAnalyzer(OpenRouterClient(s.llm_config()), max_workers=s.max_workers)
    results = analyzer.analyze_many(texts)

    print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
