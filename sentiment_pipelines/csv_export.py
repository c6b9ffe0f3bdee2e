from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Protocol, Sequence, Union

from sentiment_pipelines.sentiment_types import SentimentResult

logger = logging.getLogger(__name__)

SENTIMENT_COLUMNS = (
    "Sentiment Score",
    "Sentiment Magnitude",
    "Sentiment Categories",
    "Top Phrases",
    "Entities",
)


class BatchAnalyzer(Protocol):
    def analyze_many(self, texts: Sequence[str]) -> list[SentimentResult]: ...


def detect_delimiter(first_line: str) -> str:
    if ";" in first_line and "," not in first_line:
        return ";"
    if "\t" in first_line:
        return "\t"
    return ","


def read_records(path: Union[str, Path]) -> list[dict[str, str]]:
    """
    Read CSV rows as dicts keyed by the header row.

    Empty rows are skipped.
    """
    content = Path(path).read_text(encoding="utf-8-sig")
    if not content.strip():
        return []

    first_line = content.splitlines()[0]
    reader = csv.DictReader(io.StringIO(content, newline=""), delimiter=detect_delimiter(first_line))
    records: list[dict[str, str]] = []
    for row in reader:
        if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            continue
        records.append({k: (v if isinstance(v, str) else "") for k, v in row.items() if k is not None})
    return records


def enrich_record(record: dict[str, str], result: SentimentResult) -> dict[str, str]:
    """Copy of record with the sentiment columns appended."""
    out = dict(record)
    out["Sentiment Score"] = str(result.score)
    out["Sentiment Magnitude"] = str(result.magnitude)
    out["Sentiment Categories"] = ",".join(result.categories)
    out["Top Phrases"] = ",".join(result.top_phrases)
    out["Entities"] = ",".join(f"{e.name}:{e.sentiment}" for e in result.entities)
    return out


def process_csv_file(
        path: Union[str, Path],
        analyzer: BatchAnalyzer,
        content_column: str = "Content",
) -> Path:
    """
    Analyze every row's content column and write <stem>_sentiment.csv.

    Raises:
        ValueError: no records, or content column missing
    """
    src = Path(path)
    records = read_records(src)
    if not records:
        raise ValueError(f"No valid records found in CSV file: {src}")
    if content_column not in records[0]:
        raise ValueError(f"Missing content column: column={content_column} file={src}")

    texts = [r.get(content_column, "") for r in records]
    results = analyzer.analyze_many(texts)
    if len(results) != len(records):
        raise RuntimeError("Sentiment results size mismatch")

    enriched = [enrich_record(r, res) for r, res in zip(records, results)]

    out_path = src.with_name(f"{src.stem}_sentiment.csv")
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(enriched[0].keys()))
        writer.writeheader()
        writer.writerows(enriched)

    logger.info("Wrote sentiment CSV: rows=%s path=%s", len(enriched), out_path)
    return out_path
