# Chat model registry used by `ask`
from typing import Dict, Optional, Literal
from pydantic import BaseModel, Field

Provider = Literal["openai", "anthropic", "google"]


class ModelInfo(BaseModel):
    """Information about a specific chat model"""
    name: str
    provider: Provider
    context_window: int = Field(..., description="Maximum context window in tokens")
    max_output_tokens: int = Field(4096, description="Maximum output tokens")


MODELS: Dict[str, ModelInfo] = {
    # Anthropic Models
    "claude-sonnet-4-20250514": ModelInfo(
        name="Claude Sonnet 4",
        provider="anthropic",
        context_window=200000,
        max_output_tokens=8192,
    ),
    "claude-3-5-haiku-20241022": ModelInfo(
        name="Claude 3.5 Haiku",
        provider="anthropic",
        context_window=200000,
        max_output_tokens=8192,
    ),

    # OpenAI Models
    "gpt-4o": ModelInfo(
        name="GPT-4o",
        provider="openai",
        context_window=128000,
        max_output_tokens=16384,
    ),
    "gpt-4o-mini": ModelInfo(
        name="GPT-4o mini",
        provider="openai",
        context_window=128000,
        max_output_tokens=16384,
    ),

    # Google Models
    "gemini-1.5-pro": ModelInfo(
        name="Gemini 1.5 Pro",
        provider="google",
        context_window=2000000,
        max_output_tokens=8192,
    ),
    "gemini-1.5-flash": ModelInfo(
        name="Gemini 1.5 Flash",
        provider="google",
        context_window=1000000,
        max_output_tokens=8192,
    ),
}


def get_model_info(model_id: str) -> Optional[ModelInfo]:
    """Get information about a model, or None if it is not registered"""
    return MODELS.get(model_id)
