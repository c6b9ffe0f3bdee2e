from __future__ import annotations

import csv
from typing import Sequence

import pytest

from sentiment_pipelines.csv_export import detect_delimiter, enrich_record, process_csv_file, read_records
from sentiment_pipelines.sentiment_types import Entity, SentimentResult


def _result(text: str, score: float) -> SentimentResult:
    return SentimentResult(
        text=text,
        score=score,
        magnitude=0.5,
        categories=("product", "service"),
        top_phrases=(text.lower(), "fast delivery"),
        entities=(Entity(name="Acme", sentiment=score),),
    )


class _FakeAnalyzer:
    def __init__(self):
        self.batches: list[list[str]] = []

    def analyze_many(self, texts: Sequence[str]) -> list[SentimentResult]:
        self.batches.append(list(texts))
        return [_result(t, 0.5 if "Love" in t else -0.5) for t in texts]


def _read_csv(path) -> list[dict[str, str]]:
    with open(path, encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


def test_detect_delimiter():
    assert detect_delimiter("Tweet ID,Content") == ","
    assert detect_delimiter("Tweet ID;Content") == ";"
    assert detect_delimiter("Tweet ID\tContent") == "\t"
    assert detect_delimiter("Content") == ","


def test_read_records_skips_empty_rows_and_keeps_quoted_newlines(tmp_path):
    src = tmp_path / "posts.csv"
    src.write_text('Tweet ID,Content\n1,"first line\nsecond line"\n,\n2,Plain\n', encoding="utf-8")

    records = read_records(src)
    assert records == [
        {"Tweet ID": "1", "Content": "first line\nsecond line"},
        {"Tweet ID": "2", "Content": "Plain"},
    ]


def test_enrich_record_appends_columns_without_mutating_input():
    record = {"Tweet ID": "1", "Content": "Love it"}
    out = enrich_record(record, _result("Love it", 0.5))

    assert record == {"Tweet ID": "1", "Content": "Love it"}
    assert out["Sentiment Score"] == "0.5"
    assert out["Sentiment Magnitude"] == "0.5"
    assert out["Sentiment Categories"] == "product,service"
    assert out["Top Phrases"] == "love it,fast delivery"
    assert out["Entities"] == "Acme:0.5"


def test_process_csv_file_writes_sentiment_csv(tmp_path):
    src = tmp_path / "posts.csv"
    src.write_text("Tweet ID,Content,Likes\n1,Love it,3\n2,Hate it,0\n", encoding="utf-8")
    analyzer = _FakeAnalyzer()

    out_path = process_csv_file(src, analyzer)

    assert out_path == tmp_path / "posts_sentiment.csv"
    assert analyzer.batches == [["Love it", "Hate it"]]
    rows = _read_csv(out_path)
    assert [r["Tweet ID"] for r in rows] == ["1", "2"]
    assert [r["Sentiment Score"] for r in rows] == ["0.5", "-0.5"]
    assert rows[0]["Likes"] == "3"
    assert rows[1]["Entities"] == "Acme:-0.5"


def test_process_csv_file_semicolon_delimited(tmp_path):
    src = tmp_path / "export.csv"
    src.write_text("id;Content\n7;Love the update\n", encoding="utf-8")

    rows = _read_csv(process_csv_file(src, _FakeAnalyzer()))
    assert rows[0]["Content"] == "Love the update"
    assert rows[0]["Sentiment Score"] == "0.5"


def test_process_csv_file_rejects_empty_file(tmp_path):
    src = tmp_path / "empty.csv"
    src.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        process_csv_file(src, _FakeAnalyzer())


def test_process_csv_file_rejects_missing_content_column(tmp_path):
    src = tmp_path / "posts.csv"
    src.write_text("id,body\n1,hello\n", encoding="utf-8")
    with pytest.raises(ValueError):
        process_csv_file(src, _FakeAnalyzer())
