# luckyshot/llm.py - chat completion across providers, used by `ask`

from typing import List, Dict, Any, Optional
from openai import OpenAI
import google.generativeai as genai
import anthropic
from luckyshot.config import Settings, get_settings
from luckyshot.errors import CompletionError
from luckyshot.models import get_model_info
from luckyshot.utils.llm_logger import get_llm_logger


class LLMClient:
    """Unified interface for different LLM providers"""

    def __init__(self, model: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model = model or self.settings.model_router_default

        self.model_info = get_model_info(self.model)
        if not self.model_info:
            raise CompletionError(f"Unknown model: {self.model}")

        self.provider = self.model_info.provider
        self.logger = get_llm_logger(self.settings.llm_log_dir) if self.settings.log_provider_calls else None

        if self.provider == "openai":
            if not self.settings.openai_api_key:
                raise CompletionError("OpenAI API key not configured")
            self.openai_client = OpenAI(api_key=self.settings.openai_api_key)

        elif self.provider == "google":
            if not self.settings.gemini_api_key:
                raise CompletionError("Gemini API key not configured")
            genai.configure(api_key=self.settings.gemini_api_key)
            self.gemini_model = genai.GenerativeModel(self.model)

        elif self.provider == "anthropic":
            if not self.settings.anthropic_api_key:
                raise CompletionError("Anthropic API key not configured")
            self.anthropic_client = anthropic.Anthropic(api_key=self.settings.anthropic_api_key)

    def chat_completion(self, messages: List[Dict[str, Any]], **kwargs) -> str:
        """
        Send a chat completion request and return the text of the reply.
        Messages format: [{"role": "system"|"user"|"assistant", "content": "..."}]
        """
        temperature = kwargs.get("temperature", 0.2)
        max_tokens = min(kwargs.get("max_tokens", self.model_info.max_output_tokens),
                         self.model_info.max_output_tokens)

        try:
            if self.provider == "openai":
                response = self.openai_client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
                content = response.choices[0].message.content
                result = content.strip() if content else ""

            elif self.provider == "google":
                response = self.gemini_model.generate_content(
                    self._convert_to_gemini_prompt(messages),
                    generation_config={
                        "temperature": temperature,
                        "max_output_tokens": max_tokens,
                    },
                )
                if not response.candidates:
                    raise CompletionError("No candidates in Gemini response")
                result = response.text.strip()

            else:
                system_message = None
                anthropic_messages = []
                for msg in messages:
                    if msg["role"] == "system":
                        system_message = msg["content"]
                    else:
                        anthropic_messages.append({"role": msg["role"], "content": msg["content"]})

                request_params = {
                    "model": self.model,
                    "messages": anthropic_messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                }
                if system_message:
                    request_params["system"] = system_message

                response = self.anthropic_client.messages.create(**request_params)
                result = "".join(block.text for block in response.content if block.type == "text").strip()

        except Exception as e:
            self._log(messages, None, str(e))
            if isinstance(e, CompletionError):
                raise
            raise CompletionError(f"{self.provider} completion failed: {e}") from e

        self._log(messages, result, None)
        return result

    def _convert_to_gemini_prompt(self, messages: List[Dict[str, Any]]) -> str:
        """Convert OpenAI-style messages to a single prompt for Gemini"""
        prompt_parts = []
        for msg in messages:
            role = msg["role"]
            content = msg.get("content", "")
            if role == "system":
                prompt_parts.append(f"Instructions: {content}")
            elif role == "user":
                prompt_parts.append(f"User: {content}")
            elif role == "assistant":
                prompt_parts.append(f"Assistant: {content}")
        return "\n\n".join(prompt_parts)

    def _log(self, messages: List[Dict[str, Any]], response: Optional[str], error: Optional[str]) -> None:
        if self.logger is None:
            return
        self.logger.log_interaction(
            component="completion",
            model=self.model,
            messages=messages,
            response=response,
            error=error,
            metadata={"provider": self.provider},
        )
