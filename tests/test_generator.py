from __future__ import annotations

import pytest

from fixtures import FakeCapability, questions_json

from study_quiz.core.config import load_config
from study_quiz.quiz import errors
from study_quiz.quiz.generator import (
    GenerationClient,
    OpenAIGeneration,
    check_key_format,
    classify_failure,
)
from study_quiz.quiz.models import QuizSettings

VERIFY_OK = "API key is working correctly"
KEY = "sk-test-abcdefghijkl"


def _settings(**overrides) -> QuizSettings:
    values = dict(
        content="Cells divide by mitosis and meiosis. " * 5,
        api_key=KEY,
        question_count=3,
        seconds_per_question=30,
        show_explanations=False,
    )
    values.update(overrides)
    return QuizSettings(**values)


@pytest.mark.parametrize("key", [None, "", "   ", "short", "123456789"])
def test_key_format_preflight_rejects_without_network(key):
    capability = FakeCapability()
    client = GenerationClient(capability)
    with pytest.raises(errors.InvalidKeyFormatError):
        client.verify_key(key)
    assert capability.calls == []


def test_check_key_format_strips_whitespace():
    assert check_key_format("  abcdefghij  ") == "abcdefghij"


def test_verify_key_succeeds_on_expected_phrase():
    capability = FakeCapability([f"{VERIFY_OK}."])
    GenerationClient(capability).verify_key(KEY)
    (call,) = capability.calls
    assert call["temperature"] == 0.0
    assert call["max_output_tokens"] == 20
    assert call["api_key"] == KEY


def test_verify_key_rejects_unexpected_reply():
    capability = FakeCapability(["Hello there"])
    with pytest.raises(errors.KeyVerificationFailedError) as excinfo:
        GenerationClient(capability).verify_key(KEY)
    assert excinfo.value.reason == "unknown"


@pytest.mark.parametrize(
    "message, reason",
    [
        ("Error 401: API key invalid", "authentication"),
        ("403 Forbidden", "authentication"),
        ("You exceeded your current quota", "quota"),
        ("Error 429: rate limit reached", "rate_limited"),
        ("Connection reset by peer", "network"),
        ("Request timed out", "network"),
        ("The model gpt-x does not exist", "model_unavailable"),
        ("400 Bad Request", "malformed_request"),
        ("something odd", "unknown"),
    ],
)
def test_verification_failures_are_classified(message, reason):
    capability = FakeCapability([RuntimeError(message)])
    with pytest.raises(errors.KeyVerificationFailedError) as excinfo:
        GenerationClient(capability).verify_key(KEY)
    assert excinfo.value.reason == reason
    assert classify_failure(message) == reason


def test_generate_reverifies_then_generates():
    capability = FakeCapability([VERIFY_OK, questions_json(3)])
    client = GenerationClient(capability)
    questions = client.generate(_settings())
    assert len(questions) == 3
    verify_call, generate_call = capability.calls
    assert "API key is working correctly" in verify_call["prompt"]
    assert "Generate exactly 3 questions" in generate_call["prompt"]
    assert generate_call["temperature"] == pytest.approx(0.3)
    assert generate_call["max_output_tokens"] == 4000


def test_generate_stops_when_verification_fails():
    capability = FakeCapability([RuntimeError("401 unauthorized")])
    with pytest.raises(errors.KeyVerificationFailedError):
        GenerationClient(capability).generate(_settings())
    assert len(capability.calls) == 1


def test_generate_wraps_transport_failures():
    cause = RuntimeError("connection refused")
    capability = FakeCapability([VERIFY_OK, cause])
    with pytest.raises(errors.TransportError) as excinfo:
        GenerationClient(capability).generate(_settings())
    assert excinfo.value.reason == "network"
    assert excinfo.value.__cause__ is cause


def test_generate_propagates_format_errors():
    capability = FakeCapability([VERIFY_OK, "I cannot help with that."])
    with pytest.raises(errors.NoJsonFoundError):
        GenerationClient(capability).generate(_settings())


def test_generate_validates_settings_first():
    capability = FakeCapability()
    with pytest.raises(errors.SettingsError):
        GenerationClient(capability).generate(_settings(question_count=61))
    assert capability.calls == []


def test_generate_passes_explanation_flag_through():
    capability = FakeCapability(
        [VERIFY_OK, questions_json(2, explanations=True)]
    )
    questions = GenerationClient(capability).generate(
        _settings(question_count=2, show_explanations=True)
    )
    assert questions[0].explanation == "Because 1."


def test_from_config_uses_configured_limits(quiz_workspace):
    quiz_workspace.write_config(
        "[providers.openai]\ntemperature = 0.7\nmax_output_tokens = 1234\n"
    )
    cfg = load_config()
    capability = FakeCapability([VERIFY_OK, questions_json(3)])
    client = GenerationClient.from_config(cfg.openai, capability=capability)
    client.generate(_settings())
    assert capability.calls[1]["temperature"] == pytest.approx(0.7)
    assert capability.calls[1]["max_output_tokens"] == 1234


def test_openai_adapter_builds_chat_request(openai_factory):
    openai_factory.queue("  generated text \n")
    adapter = OpenAIGeneration(model="gpt-test", api_base="http://local/v1")
    text = adapter.complete(
        prompt="Say hi", temperature=0.3, max_output_tokens=50, api_key=KEY
    )
    assert text == "generated text"
    client = openai_factory.last
    assert client.init_kwargs == {"api_key": KEY, "base_url": "http://local/v1"}
    (call,) = openai_factory.calls
    assert call["model"] == "gpt-test"
    assert call["max_tokens"] == 50
    assert call["messages"][-1] == {"role": "user", "content": "Say hi"}


def test_openai_adapter_errors_become_transport_errors(openai_factory):
    openai_factory.queue(VERIFY_OK, RuntimeError("Error code: 429 rate limit"))
    client = GenerationClient(OpenAIGeneration())
    with pytest.raises(errors.TransportError) as excinfo:
        client.generate(_settings())
    assert excinfo.value.reason == "rate_limited"
