"""Chat model provider — maps a model name to a LangChain chat model.

Names starting with "claude" go to Anthropic; everything else to Google
Generative AI. API keys come from the environment (.env):
GOOGLE_API_KEY, ANTHROPIC_API_KEY.
"""

import os

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

from afo.config import get_config


def get_model_name() -> str:
    """Model from AFO_MODEL, else config default_model."""
    return os.getenv("AFO_MODEL") or get_config()["default_model"]


def get_model(model_name: str | None = None, temperature: float | None = None):
    """Return a chat model instance for ``model_name`` (default: get_model_name())."""
    name = model_name or get_model_name()
    if temperature is None:
        temperature = get_config().get("default_temperature", 0.9)
    if name.startswith("claude"):
        return ChatAnthropic(model=name, temperature=temperature)
    return ChatGoogleGenerativeAI(model=name, temperature=temperature)
