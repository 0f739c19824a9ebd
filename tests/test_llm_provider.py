import sys
from types import SimpleNamespace

import pytest

from litmus.exceptions import ConfigError
from litmus.llm_provider import AnthropicProvider


def _dummy_anthropic(content):
    class DummyMessages:
        calls = []

        def create(self, **kwargs):
            DummyMessages.calls.append(kwargs)
            return SimpleNamespace(
                content=content,
                usage=SimpleNamespace(input_tokens=120, output_tokens=45),
            )

    class DummyClient:
        api_key = None

        def __init__(self, api_key):
            DummyClient.api_key = api_key
            self.messages = DummyMessages()

    return type("DummyAnthropic", (), {"Anthropic": DummyClient}), DummyClient, DummyMessages


def test_missing_api_key_is_a_config_error(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        AnthropicProvider()


def test_generate_returns_first_text_block(monkeypatch):
    blocks = [
        SimpleNamespace(type="thinking", text="hmm"),
        SimpleNamespace(type="text", text='[{"type": "keyboard", "key": "Enter"}]'),
    ]
    dummy, client, messages = _dummy_anthropic(blocks)
    monkeypatch.setitem(sys.modules, "anthropic", dummy)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

    provider = AnthropicProvider(model="claude-default", max_tokens=100)
    response = provider.generate("system", "user", model="claude-override", max_tokens=50)

    assert client.api_key == "sk-ant-test"
    assert response.content == '[{"type": "keyboard", "key": "Enter"}]'
    assert response.model_name == "claude-override"
    assert (response.prompt_tokens, response.completion_tokens) == (120, 45)
    assert messages.calls == [
        {
            "model": "claude-override",
            "max_tokens": 50,
            "system": "system",
            "messages": [{"role": "user", "content": "user"}],
        }
    ]


def test_generate_defaults_to_provider_settings(monkeypatch):
    dummy, _, messages = _dummy_anthropic([])
    monkeypatch.setitem(sys.modules, "anthropic", dummy)

    provider = AnthropicProvider(model="claude-default", api_key="sk-ant-explicit", max_tokens=100)
    response = provider.generate("s", "u")

    assert provider.model_name == "claude-default"
    assert response.content == ""
    assert messages.calls[0]["model"] == "claude-default"
    assert messages.calls[0]["max_tokens"] == 100
