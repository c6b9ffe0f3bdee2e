from __future__ import annotations

import logging
import sys

from sentiment_pipelines.csv_export import process_csv_file
from sentiment_pipelines.llm_client import OpenRouterClient
from sentiment_pipelines.sentiment_pipeline import SentimentAnalyzer
from sentiment_pipelines.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    if len(sys.argv) != 2:
        print("usage: python -m sentiment_pipelines.run_csv_enrich_once <posts.csv>", file=sys.stderr)
        sys.exit(2)

    s = load_settings()
    analyzer = SentimentAnalyzer(OpenRouterClient(s.llm_config()), max_workers=s.max_workers)

    out_path = process_csv_file(sys.argv[1], analyzer, content_column=s.csv_content_column)
    print(out_path)


if __name__ == "__main__":
    main()
