# tests/test_llm.py

import json
from types import SimpleNamespace

import pytest

from luckyshot.config import Settings
from luckyshot.errors import CompletionError
from luckyshot.llm import LLMClient
from luckyshot.models import get_model_info

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "What does multiply do?"},
]

def test_unknown_model(tmp_path):
    with pytest.raises(CompletionError, match="Unknown model"):
        LLMClient(model="not-a-model", settings=Settings(luckyshot_home=tmp_path, openai_api_key="sk-test"))

def test_missing_key(tmp_path):
    with pytest.raises(CompletionError, match="API key"):
        LLMClient(model="claude-3-5-haiku-20241022", settings=Settings(luckyshot_home=tmp_path, anthropic_api_key=""))

def test_registry_lookup():
    assert get_model_info("gpt-4o-mini").provider == "openai"
    assert get_model_info("gemini-1.5-flash").provider == "google"
    assert get_model_info("nope") is None

def test_openai_completion(tmp_path):
    client = LLMClient(model="gpt-4o-mini", settings=Settings(luckyshot_home=tmp_path, openai_api_key="sk-test"))
    seen = {}

    def create(**kwargs):
        seen.update(kwargs)
        message = SimpleNamespace(content="  It multiplies.  ")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client.openai_client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    assert client.chat_completion(MESSAGES) == "It multiplies."
    assert seen["messages"] == MESSAGES
    assert seen["max_tokens"] == 16384

def test_anthropic_completion_moves_system_prompt(tmp_path):
    settings = Settings(luckyshot_home=tmp_path, anthropic_api_key="sk-ant-test")
    client = LLMClient(model="claude-3-5-haiku-20241022", settings=settings)
    seen = {}

    def create(**kwargs):
        seen.update(kwargs)
        return SimpleNamespace(content=[SimpleNamespace(type="text", text="It multiplies.")])

    client.anthropic_client = SimpleNamespace(messages=SimpleNamespace(create=create))
    assert client.chat_completion(MESSAGES, max_tokens=100) == "It multiplies."
    assert seen["system"] == "Be brief."
    assert seen["messages"] == [MESSAGES[1]]
    assert seen["max_tokens"] == 100

def test_provider_failure_is_wrapped_and_logged(tmp_path):
    log_dir = tmp_path / "logs"
    settings = Settings(luckyshot_home=tmp_path, openai_api_key="sk-test",
                        log_provider_calls=True, llm_log_dir=str(log_dir))
    client = LLMClient(model="gpt-4o", settings=settings)

    def create(**kwargs):
        raise ConnectionError("network down")

    client.openai_client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    with pytest.raises(CompletionError, match="network down"):
        client.chat_completion(MESSAGES)

    files = list((log_dir / "completion").glob("*_error_*.json"))
    assert len(files) == 1
    assert json.loads(files[0].read_text())["metadata"] == {"provider": "openai"}

def test_gemini_prompt_conversion(tmp_path):
    client = LLMClient.__new__(LLMClient)
    prompt = client._convert_to_gemini_prompt(MESSAGES + [{"role": "assistant", "content": "Sure."}])
    assert prompt == "Instructions: Be brief.\n\nUser: What does multiply do?\n\nAssistant: Sure."
