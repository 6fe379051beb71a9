"""Key-value store for agent prompts, templates and model settings.

Entries are seeded from a YAML file (``kv_seeds_path`` in config) and read once
at import time. Keys follow ``versions.<agent-id>.<name>.<implementation>``;
each value is a mapping with at least a ``text`` entry.
"""

from pathlib import Path

import yaml

from afo.config import get_config


def _load_store(path: Path) -> dict[str, dict]:
    if not path.exists():
        return {}
    entries = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    return {entry["key"]: entry["value"] for entry in entries}


_store = _load_store(
    Path(__file__).resolve().parent.parent / get_config().get("kv_seeds_path", "seeds.yaml")
)


def get_kv_value(key: str) -> dict | None:
    """Get a value from the KV store by key."""
    return _store.get(key)


def get_kv_text(key: str) -> str | None:
    """Get the text of a value from the KV store by key."""
    value = get_kv_value(key)
    if value is None:
        return None
    return value.get("text")


def iter_keys(prefix: str = ""):
    """Yield every key starting with ``prefix``, in seed order."""
    for key in _store:
        if key.startswith(prefix):
            yield key


def _with_default(agent_id: str, name: str, implementation: str) -> str | None:
    text = get_kv_text(f"versions.{agent_id}.{name}.{implementation}")
    if not text and implementation != "default":
        return get_kv_text(f"versions.{agent_id}.{name}.default")
    return text


def get_agent_system_prompt(agent_id: str, implementation: str = "default") -> str | None:
    """System prompt for an agent implementation. No fallback to default."""
    return get_kv_text(f"versions.{agent_id}.system.{implementation}")


def get_agent_prompt_template(agent_id: str, implementation: str = "default") -> str | None:
    """User prompt template; falls back to the default implementation."""
    return _with_default(agent_id, "prompt", implementation)


def get_agent_model_name(agent_id: str, implementation: str = "default") -> str | None:
    """Model name; falls back to the default implementation."""
    return _with_default(agent_id, "_model_name", implementation)


def get_agent_temperature(agent_id: str, implementation: str = "default") -> float | None:
    """Sampling temperature, or None when unset or not a number."""
    text = _with_default(agent_id, "_temperature", implementation)
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def get_agent_implementations(agent_id: str) -> list[str]:
    """Implementation names that define a system prompt for ``agent_id``."""
    prefix = f"versions.{agent_id}.system."
    return [key[len(prefix):] for key in iter_keys(prefix)]
