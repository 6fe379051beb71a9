"""Agent — a system prompt bound to a chat model, configured from the KV store."""

import sys

from afo.config import get_config
from afo.services.kv_store import (
    get_agent_model_name,
    get_agent_system_prompt,
    get_agent_temperature,
)
from afo.services.model_provider import get_model
from afo.services.template_engine import (
    TemplateNotFoundError,
    TemplateRenderError,
    render_template,
)
from afo.utils.parsing import invoke_with_retry

UNKNOWN_ERROR = "Unknown error occurred"



def _content_text(content) -> str:
    """Flatten message content, which some providers return as a list of blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class Agent:
    def __init__(self, agent_id: str, instructions: str, model_name: str | None = None,
                 temperature: float | None = None):
        self.agent_id = agent_id
        self.instructions = instructions
        self.model_name = model_name
        self.temperature = temperature

    def generate(self, prompt: str, temperature: float | None = None) -> dict:
        """Send ``prompt`` with the agent's instructions and return {"text": str}.

        Temperature precedence: argument, then the agent's configured value,
        then config default_temperature.
        """
        if temperature is None:
            temperature = self.temperature
        if temperature is None:
            temperature = get_config().get("default_temperature", 0.9)

        llm = get_model(self.model_name, temperature=temperature)
        messages = [
            {"role": "system", "content": self.instructions},
            {"role": "user", "content": prompt},
        ]
        response = invoke_with_retry(llm, messages)
        return {"text": _content_text(response.content)}


def create_agent(agent_id: str, implementation: str = "default",
                 default_instructions: str = "") -> Agent:
    """Build an agent from KV store settings, falling back to the given defaults.

    Reads ``versions.<agent_id>.system|_model_name|_temperature.<implementation>``.
    """
    return Agent(
        agent_id=f"{agent_id}-{implementation}",
        instructions=get_agent_system_prompt(agent_id, implementation) or default_instructions,
        model_name=get_agent_model_name(agent_id, implementation),
        temperature=get_agent_temperature(agent_id, implementation),
    )


def error_message(exc: BaseException) -> str:
    """Message for an error result; generic when the exception carries none."""
    return str(exc) or UNKNOWN_ERROR


def resolve_prompt(key: str, version: str, implementation: str, variables: dict,
                   fallback, tag: str) -> str:
    """Render a KV store template, or build the fallback prompt when there is none.

    ``fallback`` is a zero-argument callable returning the hardcoded prompt.
    """
    try:
        return render_template(key, version, implementation, variables)["output"]
    except (TemplateNotFoundError, TemplateRenderError) as exc:
        print(f"[{tag}] Template unavailable, using fallback: {exc}", file=sys.stderr)
        return fallback()
