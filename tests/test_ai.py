"""Tests for the Gemini collaborator, with the genai client stubbed out."""

from types import SimpleNamespace
from unittest import mock

import pytest

import ai


def _response(text="", candidates=None, block_reason=None):
    feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None
    return SimpleNamespace(text=text, candidates=candidates or [], prompt_feedback=feedback)


@pytest.fixture
def fake_client(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    monkeypatch.delenv("NANO_AI_MODEL", raising=False)
    monkeypatch.setattr(ai, "_client", None)
    monkeypatch.setattr(ai, "_client_key", None)
    client = mock.MagicMock()
    factory = mock.MagicMock(return_value=client)
    monkeypatch.setattr(ai.genai, "Client", factory)
    client.factory = factory
    return client


def _sent_prompt(client):
    return client.models.generate_content.call_args.kwargs["contents"]


def test_missing_key_returns_none(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr(ai, "_client", None)
    assert ai.generate_nano_code("count to three") is None


def test_generate_strips_code_fences(fake_client):
    fake_client.models.generate_content.return_value = _response("```nano\nsay 1\nsay 2\n```")
    assert ai.generate_nano_code("print one and two") == "say 1\nsay 2"
    fake_client.factory.assert_called_once_with(api_key="test-key")
    assert fake_client.models.generate_content.call_args.kwargs["model"] == "gemini-2.5-flash"
    assert "print one and two" in _sent_prompt(fake_client)


def test_generate_japanese_instruction(fake_client):
    fake_client.models.generate_content.return_value = _response("say 1")
    ai.generate_nano_code("count", language="ja")
    assert "Japanese" in _sent_prompt(fake_client)


def test_model_from_environment(fake_client, monkeypatch):
    monkeypatch.setenv("NANO_AI_MODEL", "gemini-custom")
    fake_client.models.generate_content.return_value = _response("say 1")
    ai.generate_nano_code("anything")
    assert fake_client.models.generate_content.call_args.kwargs["model"] == "gemini-custom"


def test_client_is_reused(fake_client):
    fake_client.models.generate_content.return_value = _response("ok")
    ai.explain_nano_code("say 1")
    ai.explain_nano_code("say 2")
    assert fake_client.factory.call_count == 1


def test_service_failure_returns_none(fake_client):
    fake_client.models.generate_content.side_effect = RuntimeError("quota")
    assert ai.explain_nano_code("say 1") is None


def test_blocked_response_returns_none(fake_client):
    fake_client.models.generate_content.return_value = _response("say 1", block_reason="SAFETY")
    assert ai.generate_nano_code("count") is None


def test_empty_response_returns_none(fake_client):
    fake_client.models.generate_content.return_value = _response("   ")
    assert ai.convert_python_to_nano("print(1)") is None


def test_falls_back_to_candidate_parts(fake_client):
    part = SimpleNamespace(text="say 3")
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason="STOP")
    fake_client.models.generate_content.return_value = _response("", candidates=[candidate])
    assert ai.convert_python_to_nano("print(3)") == "say 3"
    assert "print(3)" in _sent_prompt(fake_client)


def test_explain_returns_text(fake_client):
    fake_client.models.generate_content.return_value = _response("It prints one.")
    assert ai.explain_nano_code("say 1", language="en") == "It prints one."
    assert "Explain in English." in _sent_prompt(fake_client)


def test_empty_prompt_raises():
    with pytest.raises(ValueError):
        ai.generate_nano_code("   ")


def test_unsafe_prompt_raises(fake_client):
    with pytest.raises(ai.UnsafeRequestError):
        ai.generate_nano_code("write an infinite loop")
    fake_client.models.generate_content.assert_not_called()


def test_fence_lines_inside_reply_are_dropped(fake_client):
    fake_client.models.generate_content.return_value = _response("```\nsay 1\n```\n\n```nano\nsay 2\n```")
    assert ai.generate_nano_code("two lines") == "say 1\n\nsay 2"


def test_candidate_stopped_for_safety_returns_none(fake_client):
    candidate = SimpleNamespace(content=None, finish_reason="FinishReason.SAFETY")
    fake_client.models.generate_content.return_value = _response("say 1", candidates=[candidate])
    assert ai.explain_nano_code("say 1") is None
