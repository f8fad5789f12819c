"""Tests for CommentAnalyzer — prompt building, response parsing, label rewriting."""

from __future__ import annotations

import json

import pytest

from comment_insight_mcp.analyzer import (
    ANALYSIS_FAILED_MESSAGE,
    CommentAnalyzer,
    neutral_stat,
    parse_analysis_response,
    relabel_sentiment,
    viewpoint_label,
    viewpoint_stats,
)
from comment_insight_mcp.errors import AnalysisFailedError, ErrorKind, MalformedResponseError
from comment_insight_mcp.models.analysis import AnalysisResult, SentimentBucket


def _response(**overrides) -> str:
    payload = {
        "viewpoints": ["X", "Y"],
        "summary": "S",
        "sentiment": [
            {"name": "意見1を支持", "count": 40},
            {"name": "意見2を支持", "count": 30},
            {"name": "中立/その他", "count": 30},
        ],
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


# ── relabel_sentiment ───────────────────────────────────────────────────────


class TestRelabelSentiment:
    @pytest.mark.parametrize("name,expected", [
        ("意見1を支持", "意見 A"),
        ("意見2を支持", "意見 B"),
        ("意見3を支持", "意見 C"),
        ("意見4を支持", "意見 D"),
        ("意見 2 を支持", "意見 B"),
    ])
    def test_numeric_to_letter(self, name, expected):
        assert relabel_sentiment(name) == expected

    @pytest.mark.parametrize("name", ["中立/その他", "その他", "意見を支持", ""])
    def test_non_matching_passes_through(self, name):
        assert relabel_sentiment(name) == name

    @pytest.mark.parametrize("name", ["意見1を支持", "意見3を支持", "中立/その他"])
    def test_idempotent(self, name):
        once = relabel_sentiment(name)
        assert relabel_sentiment(once) == once

    def test_letter_matches_viewpoint_index(self):
        for index in range(4):
            assert relabel_sentiment(f"意見{index + 1}を支持") == viewpoint_label(index)


# ── parse_analysis_response ────────────────────────────────────────────────


class TestParseAnalysisResponse:
    def test_valid(self):
        parsed = parse_analysis_response(_response())
        assert parsed.summary == "S"
        assert parsed.viewpoints == ["X", "Y"]
        assert parsed.sentiment[0] == SentimentBucket(name="意見1を支持", count=40)

    def test_surrounding_whitespace(self):
        assert parse_analysis_response("\n  " + _response() + "\n").summary == "S"

    def test_not_json(self):
        with pytest.raises(MalformedResponseError):
            parse_analysis_response("Sorry, I can't help with that.")

    @pytest.mark.parametrize("overrides", [
        {"summary": ""},
        {"summary": None},
        {"sentiment": {"name": "x"}},
        {"viewpoints": "X, Y"},
        {"sentiment": [{"name": "意見1を支持", "count": -1}]},
        {"sentiment": [{"name": "意見1を支持"}]},
    ])
    def test_shape_violations(self, overrides):
        with pytest.raises(MalformedResponseError):
            parse_analysis_response(_response(**overrides))

    def test_top_level_array(self):
        with pytest.raises(MalformedResponseError):
            parse_analysis_response("[]")


# ── CommentAnalyzer ────────────────────────────────────────────────────────


class TestCommentAnalyzer:
    async def test_rewrites_labels(self, mock_gemini):
        """GIVEN numeric categories WHEN analysing THEN buckets carry lettered labels."""
        mock_gemini.generate.return_value = _response()
        analyzer = CommentAnalyzer(mock_gemini)

        result = await analyzer.analyze(["good", "bad"])

        assert result == AnalysisResult(
            summary="S",
            viewpoints=["X", "Y"],
            sentiment=[
                SentimentBucket(name="意見 A", count=40),
                SentimentBucket(name="意見 B", count=30),
                SentimentBucket(name="中立/その他", count=30),
            ],
        )

    async def test_sends_schema_and_system_instruction(self, mock_gemini):
        mock_gemini.generate.return_value = _response()

        await CommentAnalyzer(mock_gemini).analyze(["c"])

        kwargs = mock_gemini.generate.await_args.kwargs
        assert set(kwargs["response_schema"]["required"]) == {"viewpoints", "summary", "sentiment"}
        assert kwargs["system_instruction"]

    async def test_truncates_to_limit(self, mock_gemini):
        """GIVEN 150 comments WHEN analysing THEN only the first 100 are in the prompt."""
        mock_gemini.generate.return_value = _response()
        comments = [f"comment-{i:03d}" for i in range(150)]

        await CommentAnalyzer(mock_gemini, comment_limit=100).analyze(comments)

        prompt = mock_gemini.generate.await_args.args[0]
        assert "comment-099" in prompt
        assert "comment-100" not in prompt
        assert "comment-000\n---\ncomment-001" in prompt

    def test_prompt_names_categories(self, mock_gemini):
        prompt = CommentAnalyzer(mock_gemini).build_prompt(["only"])
        assert "意見1を支持" in prompt
        assert "意見2を支持" in prompt
        assert "中立/その他" in prompt

    async def test_transport_failure(self, mock_gemini):
        mock_gemini.generate.side_effect = RuntimeError("503 service unavailable")

        with pytest.raises(AnalysisFailedError) as exc_info:
            await CommentAnalyzer(mock_gemini).analyze(["c"])

        assert str(exc_info.value) == ANALYSIS_FAILED_MESSAGE
        assert exc_info.value.kind is ErrorKind.UPSTREAM_FAILURE
        assert "503" not in str(exc_info.value)

    async def test_malformed_response(self, mock_gemini):
        mock_gemini.generate.return_value = json.dumps({"summary": "S"})

        with pytest.raises(AnalysisFailedError) as exc_info:
            await CommentAnalyzer(mock_gemini).analyze(["c"])

        assert str(exc_info.value) == ANALYSIS_FAILED_MESSAGE
        assert exc_info.value.kind is ErrorKind.MALFORMED_RESPONSE


# ── derived stats ──────────────────────────────────────────────────────────


class TestViewpointStats:
    def _result(self, sentiment, viewpoints=("X", "Y")) -> AnalysisResult:
        return AnalysisResult(
            summary="S",
            viewpoints=list(viewpoints),
            sentiment=[SentimentBucket(name=n, count=c) for n, c in sentiment],
        )

    def test_joins_by_label(self):
        result = self._result([("意見 A", 40), ("意見 B", 30), ("中立/その他", 30)])

        stats = viewpoint_stats(result)

        assert [(s.label, s.viewpoint, s.count, s.percentage) for s in stats] == [
            ("意見 A", "X", 40, 40),
            ("意見 B", "Y", 30, 30),
        ]

    def test_whitespace_insensitive(self):
        result = self._result([("意見A", 3), ("意見　B", 1)])
        assert [s.count for s in viewpoint_stats(result)] == [3, 1]

    def test_missing_bucket_counts_zero(self):
        result = self._result([("意見 A", 5)])
        assert viewpoint_stats(result)[1].count == 0

    def test_zero_total(self):
        result = self._result([("意見 A", 0), ("中立/その他", 0)])
        assert viewpoint_stats(result)[0].percentage == 0
        assert neutral_stat(result).percentage == 0

    def test_neutral(self):
        result = self._result([("意見 A", 1), ("中立/その他", 3)])
        stat = neutral_stat(result)
        assert stat.label == "中立/その他"
        assert stat.count == 3
        assert stat.percentage == 75

    def test_no_neutral_bucket(self):
        assert neutral_stat(self._result([("意見 A", 1)])) is None
