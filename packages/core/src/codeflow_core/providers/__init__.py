from __future__ import annotations

from codeflow_core.providers.base import BaseProvider


def get_provider(config: dict) -> BaseProvider:
    """Instantiate the provider named by ``config["model"]``."""
    model = config["model"]
    if model == "anthropic":
        from codeflow_core.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=config["anthropic_api_key"], model=config.get("model_name"))
    if model == "openai":
        from codeflow_core.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=config["openai_api_key"], model=config.get("model_name"))
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")
