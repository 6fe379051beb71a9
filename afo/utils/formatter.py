"""Output Formatter — renders a finished onboarding session as a Markdown collection."""

import re
from pathlib import Path

from afo.config import get_config
from afo.state import OnboardingState
from afo.utils.prompt_builder import NO_RESPONSE, selected_items


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def render_collection(state: OnboardingState) -> str:
    """Render profile, conversation, summaries and curated affirmations as Markdown."""
    context = state["context"]
    lines = [f"# Affirmations for {context['name']}", ""]
    lines.append(f"- **Flow:** {state['variant']} ({state['implementation']})")
    if context.get("familiarity"):
        lines.append(f"- **Familiarity:** {context['familiarity']}")
    if context.get("initial_topic"):
        lines.append(f"- **Topic:** {context['initial_topic']}")
    if context.get("topics"):
        lines.append(f"- **Topics:** {', '.join(context['topics'])}")
    lines.append("")

    if state.get("summary") or state.get("pre_summary"):
        lines.append("## Summary")
        lines.append("")
        lines.append(state.get("summary") or state["pre_summary"])
        lines.append("")

    exchanges = context.get("exchanges", [])
    if exchanges:
        lines.append("## Conversation")
        lines.append("")
        for i, exchange in enumerate(exchanges, 1):
            answer = exchange["answer"]
            lines.append(f"### {i}. {exchange['question']}")
            lines.append("")
            if answer.get("text"):
                lines.append(answer["text"])
            selected = selected_items(answer)
            if selected:
                lines.append(f"*Selected:* {', '.join(selected)}")
            if not answer.get("text") and not selected:
                lines.append(NO_RESPONSE)
            lines.append("")

    approved = state.get("approved", [])
    lines.append("## Approved Affirmations")
    lines.append("")
    if approved:
        lines.extend(f"- {a}" for a in approved)
    else:
        lines.append("No affirmations approved.")
    lines.append("")

    reviewed = set(approved) | set(state.get("skipped", []))
    pending = [a for a in state.get("affirmations", []) if a not in reviewed]
    if pending:
        lines.append("## Not Yet Reviewed")
        lines.append("")
        lines.extend(f"- {a}" for a in pending)
        lines.append("")

    return "\n".join(lines)


def write_collection(state: OnboardingState) -> Path:
    """Write the collection as Markdown next to the configured output path.

    The filename is derived from the user's name; an existing file is never
    overwritten. Returns the Path to the written file.
    """
    config = get_config()
    base_path = Path(__file__).resolve().parent.parent.parent / config["output_path"]
    output_dir = base_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    stem = _slug(state["context"]["name"]) or base_path.stem

    output_path = output_dir / f"{stem}.md"
    counter = 1
    while output_path.exists():
        counter += 1
        output_path = output_dir / f"{stem} ({counter}).md"

    output_path.write_text(render_collection(state), encoding="utf-8")
    return output_path
