from __future__ import annotations

import json

import pytest
import requests

from wordwise_analysis.analyzers import build_remote_client, remote
from wordwise_analysis.analyzers.remote import (
    HTTPEndpointTransport,
    OpenAIChatTransport,
    RemoteAnalysisError,
    RemoteAnalyzerClient,
    parse_remote_payload,
)
from wordwise_analysis.config import AnalysisConfig, OpenAISettings, RemoteSettings
from wordwise_analysis.llm import openai_client as oa_client
from wordwise_analysis.models import AnalysisStatus
from wordwise_analysis.styles import get_style
from tests.utils import StaticTransport

TEXT = "I recieve teh package every week."


def _entry(original: str, **extra):
    entry = {
        "kind": "spelling",
        "severity": "high",
        "message": "Misspelled word",
        "originalText": original,
        "suggestedText": "fixed",
        "confidence": 0.9,
    }
    entry.update(extra)
    return entry


def test_parse_keeps_valid_findings_and_recomputes_missing_spans():
    payload = {
        "findings": [_entry("recieve", suggestedText="receive")],
        "scores": {"correctness": 70, "clarity": 80, "engagement": 90, "delivery": 60},
    }
    result = parse_remote_payload(payload, TEXT)

    assert result.status is AnalysisStatus.OK
    assert len(result.findings) == 1
    finding = result.findings[0]
    assert (finding.span.start, finding.span.end) == (2, 9)
    assert finding.suggested_text == "receive"
    assert finding.source == "remote"
    assert result.scores.overall == 75


def test_parse_drops_malformed_and_hallucinated_entries():
    payload = {
        "issues": [
            _entry("teh"),
            _entry("nonexistent phrase"),
            {"kind": "tone", "originalText": "teh"},
            {"kind": "grammar", "originalText": ""},
            "not an object",
        ]
    }
    result = parse_remote_payload(payload, TEXT)

    assert [f.original_text for f in result.findings] == ["teh"]


def test_parse_rejects_payload_where_every_finding_is_hallucinated():
    payload = {"findings": [_entry("colour"), _entry("favourite")]}
    with pytest.raises(RemoteAnalysisError):
        parse_remote_payload(payload, TEXT)


def test_parse_rejects_payload_without_findings_or_scores():
    with pytest.raises(RemoteAnalysisError):
        parse_remote_payload({"answer": "looks fine"}, TEXT)


def test_parse_normalizes_fields_and_scores():
    payload = {
        "findings": [
            _entry("TEH".lower(), kind="Grammar", severity="CRITICAL", confidence=1.7),
            _entry("package", startIndex=50, endIndex=40, confidence="high"),
        ],
        "scores": {"correctness": 150, "clarity": -5},
    }
    result = parse_remote_payload(payload, TEXT)

    first, second = result.findings
    assert first.kind == "grammar"
    assert first.severity == "medium"
    assert first.confidence == 1.0
    assert second.confidence == pytest.approx(0.8)
    assert (second.span.start, second.span.end) == (14, 21)
    assert result.scores.correctness == 100
    assert result.scores.clarity == 0
    assert result.scores.engagement == 80
    assert result.scores.delivery == 85


def test_parse_replaces_non_finite_numbers_with_defaults():
    payload = {
        "findings": [_entry("teh", confidence=float("-inf"))],
        "scores": {
            "correctness": float("inf"),
            "clarity": float("-inf"),
            "engagement": float("nan"),
            "delivery": 70,
        },
    }
    result = parse_remote_payload(payload, TEXT)

    assert result.findings[0].confidence == pytest.approx(0.8)
    assert result.scores.correctness == 90
    assert result.scores.clarity == 85
    assert result.scores.engagement == 80
    assert result.scores.delivery == 70


@pytest.mark.asyncio
async def test_client_keeps_remote_result_with_infinite_score():
    transport = StaticTransport(
        {"findings": [_entry("teh")], "scores": {"correctness": float("inf")}}
    )
    result = await RemoteAnalyzerClient(transport).analyze(TEXT)

    assert result.status is AnalysisStatus.OK
    assert result.scores.correctness == 90


def test_parse_accepts_scores_only_payload():
    result = parse_remote_payload({"scores": {}}, TEXT)
    assert result.findings == []
    assert result.scores.overall == 85


@pytest.mark.asyncio
async def test_client_returns_remote_result():
    transport = StaticTransport({"findings": [_entry("teh", suggestedText="the")]})
    result = await RemoteAnalyzerClient(transport).analyze(TEXT)

    assert result.status is AnalysisStatus.OK
    assert result.remote_available
    assert transport.calls == [TEXT]
    assert result.metadata.word_count == 6


@pytest.mark.asyncio
async def test_client_degrades_to_fallback_on_transport_failure():
    transport = StaticTransport(error=RemoteAnalysisError("HTTP 503"))
    result = await RemoteAnalyzerClient(transport).analyze(TEXT)

    assert result.status is AnalysisStatus.DEGRADED
    assert not result.remote_available
    assert {f.original_text for f in result.findings} == {"recieve", "teh"}
    assert all(f.source == "fallback" for f in result.findings)


@pytest.mark.asyncio
async def test_client_degrades_when_every_finding_is_hallucinated():
    transport = StaticTransport({"findings": [_entry("colour")]})
    result = await RemoteAnalyzerClient(transport).analyze(TEXT)

    assert result.status is AnalysisStatus.DEGRADED


@pytest.mark.asyncio
async def test_client_truncates_long_text_but_maps_against_full_text():
    text = "x" * 30 + " teh end"
    transport = StaticTransport({"findings": [_entry("teh")]})
    result = await RemoteAnalyzerClient(transport, max_chars=10).analyze(text)

    assert transport.calls == ["x" * 10]
    assert result.findings[0].span.start == 31


class DummyResponse:
    def __init__(self, status_code: int = 200, payload=None, invalid_json: bool = False):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


def test_http_transport_posts_text(monkeypatch):
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json, headers=headers, timeout=timeout)
        return DummyResponse(payload={"findings": []})

    monkeypatch.setattr(remote.requests, "post", fake_post)
    settings = RemoteSettings(
        endpoint="https://example.test/analyze", headers={"apikey": "k"}, timeout=3
    )
    payload = HTTPEndpointTransport(settings).fetch("Some text.")

    assert payload == {"findings": []}
    assert captured == {
        "url": "https://example.test/analyze",
        "json": {"text": "Some text."},
        "headers": {"apikey": "k"},
        "timeout": 3,
    }


@pytest.mark.parametrize(
    "response",
    [
        DummyResponse(status_code=500),
        DummyResponse(status_code=302, payload={"findings": []}),
        DummyResponse(invalid_json=True),
        DummyResponse(payload=[1]),
    ],
)
def test_http_transport_failures_raise_remote_error(monkeypatch, response):
    monkeypatch.setattr(remote.requests, "post", lambda *args, **kwargs: response)
    transport = HTTPEndpointTransport(RemoteSettings(endpoint="https://example.test"))
    with pytest.raises(RemoteAnalysisError):
        transport.fetch("text")


def test_http_transport_wraps_connection_errors(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(remote.requests, "post", fake_post)
    transport = HTTPEndpointTransport(RemoteSettings(endpoint="https://example.test"))
    with pytest.raises(RemoteAnalysisError):
        transport.fetch("text")


def test_http_transport_requires_endpoint():
    with pytest.raises(ValueError):
        HTTPEndpointTransport(RemoteSettings(endpoint=None))


def test_openai_transport_builds_prompts_and_decodes_json():
    captured: dict[str, str] = {}

    class DummyClient:
        def complete_json(self, *, system_prompt: str, user_prompt: str) -> str:
            captured["system"] = system_prompt
            captured["user"] = user_prompt
            return json.dumps({"findings": [], "scores": {"correctness": 99}})

    transport = OpenAIChatTransport(DummyClient(), style=get_style("academic"))
    payload = transport.fetch("Its a good day.")

    assert payload["scores"]["correctness"] == 99
    assert "Its a good day." in captured["user"]
    assert "WRITING STYLE: ACADEMIC" in captured["system"]
    assert "Passive voice is acceptable" in transport.system_prompt


def test_openai_transport_rejects_malformed_json():
    class DummyClient:
        def complete_json(self, **_: str) -> str:
            return "Sure! Here are the issues:"

    with pytest.raises(RemoteAnalysisError):
        OpenAIChatTransport(DummyClient()).fetch("text")


def test_build_remote_client_variants(monkeypatch):
    assert build_remote_client(AnalysisConfig()) is None

    http_config = AnalysisConfig(
        remote=RemoteSettings(enabled=True, endpoint="https://example.test")
    )
    assert isinstance(build_remote_client(http_config), RemoteAnalyzerClient)

    with pytest.raises(ValueError):
        build_remote_client(AnalysisConfig(remote=RemoteSettings(enabled=True)))
    with pytest.raises(ValueError):
        build_remote_client(
            AnalysisConfig(remote=RemoteSettings(enabled=True, transport="grpc"))
        )

    monkeypatch.setattr(oa_client, "OpenAI", object())
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    openai_config = AnalysisConfig(remote=RemoteSettings(enabled=True, transport="openai"))
    with pytest.raises(ValueError):
        build_remote_client(openai_config)

    monkeypatch.setenv("GROQ_API_KEY", "token")
    assert isinstance(build_remote_client(openai_config), RemoteAnalyzerClient)

    explicit = AnalysisConfig(
        remote=RemoteSettings(enabled=True, transport="openai"),
        openai=OpenAISettings(api_key="explicit", api_key_env="UNSET_VAR"),
    )
    assert isinstance(build_remote_client(explicit), RemoteAnalyzerClient)
