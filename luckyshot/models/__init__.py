# Models package - chat model registry
from .registry import ModelInfo, MODELS, get_model_info

__all__ = ["ModelInfo", "MODELS", "get_model_info"]
