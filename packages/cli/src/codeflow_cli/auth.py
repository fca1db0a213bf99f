"""Provider credential resolution.

Keys are read from the environment only, never from .codeflow.yml, so a
config file can be committed without leaking secrets. load_config() has
already copied them into the config dict; this module decides whether the
selected provider is usable and what to tell the user when it is not.
"""

from __future__ import annotations

from codeflow_core.config import API_KEY_ENV


def api_key_env(model: str) -> str:
    return API_KEY_ENV.get(model, "ANTHROPIC_API_KEY")


def resolve_api_key(config: dict) -> str | None:
    """Return the key for the configured provider, or None if it is not set."""
    model = config.get("model", "anthropic")
    return config.get(f"{model}_api_key") or None


def setup_instruction(config: dict) -> str:
    env = api_key_env(config.get("model", "anthropic"))
    return f'Set it with: export {env}="your-key"'
