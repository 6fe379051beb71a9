"""Prompt builder — serializes session context into flat text prompts.

All functions are pure: the same context always produces the same string, with
sections and exchanges in insertion order. They are the fallback prompts used
when no KV store template is configured for a variant.
"""

from afo.variants import FlowVariant

NO_RESPONSE = "(no response provided)"

FIRST_SCREEN_INITIAL = 5
FIRST_SCREEN_EXPANDED = 8

# Step-based discovery (fo-11): what each step should learn and its chip format.
STEP_INTENTS = {
    5: {
        "intent": "Understand what's going on in the user's life that makes this goal feel important right now.",
        "skip_rule": "If the goal answer already has rich life context, set skip to true.",
        "chip_format": 'Hybrid fragments ending with "..."',
        "counts": (8, 15),
    },
    6: {
        "intent": "Learn what tone of support the user wants for their affirmations.",
        "skip_rule": "",
        "chip_format": "Single words ONLY describing tone qualities.",
        "counts": (8, 12),
    },
    7: {
        "intent": "Capture any remaining nuance, struggles, or friction points before generating affirmations.",
        "skip_rule": "",
        "chip_format": 'Sentence fragments ending with "..."',
        "counts": (6, 10),
    },
}


def selected_items(answer: dict) -> list[str]:
    """Chips or fragments selected in an answer, whichever the answer carries."""
    return answer.get("selected_chips") or answer.get("selected_fragments") or []


def _answer_text(answer: dict) -> str:
    """Free text followed by any selections, comma separated."""
    parts = [answer["text"]] if answer.get("text") else []
    parts.extend(selected_items(answer))
    return ", ".join(parts) or NO_RESPONSE


def _selection_label(variant: FlowVariant) -> str:
    return "Selected options" if variant.modality == "chips" else "Selected fragments"


def _profile_lines(context: dict, variant: FlowVariant, topic_label: str) -> list[str]:
    lines = [f"Name: {context['name']}"]
    if variant.uses_familiarity and context.get("familiarity"):
        lines.append(f"Familiarity with affirmations: {context['familiarity']}")
    if context.get("initial_topic"):
        lines.append(f"{topic_label}: {context['initial_topic']}")
    if context.get("topics"):
        lines.append(f"Topics: {', '.join(context['topics'])}")
    return lines


def _detailed_answer_lines(answer: dict, variant: FlowVariant) -> list[str]:
    """Answer rendering used in affirmation and summary prompts."""
    parts = []
    if answer.get("text"):
        parts.append(f'Free response: "{answer["text"]}"')
    selected = selected_items(answer)
    if selected:
        parts.append(f"{_selection_label(variant)}: {', '.join(selected)}")
    return parts or [NO_RESPONSE]


def _numbered(items) -> list[str]:
    return [f'{i}. "{item}"' for i, item in enumerate(items, 1)]


def build_discovery_prompt(context: dict, variant: FlowVariant) -> str:
    """Prompt asking the discovery agent for the next screen."""
    lines = ["## User Context"]
    lines.extend(_profile_lines(context, variant, "Initial topic"))
    lines.append(f"Current screen number: {context['screen_number']}")
    lines.append("")

    lines.append("## Conversation History")
    exchanges = context.get("exchanges", [])
    if not exchanges:
        lines.append("No exchanges yet. This is the first screen.")
    for i, exchange in enumerate(exchanges, 1):
        answer = exchange["answer"]
        lines.append(f"### Screen {i}")
        lines.append(f"Question: {exchange['question']}")
        parts = []
        if answer.get("text"):
            parts.append(answer["text"])
        selected = selected_items(answer)
        if selected:
            parts.append(f"[{variant.modality}: {', '.join(selected)}]")
        lines.append(f"Answer: {' '.join(parts) if parts else NO_RESPONSE}")
        lines.append("")

    lines.append("")
    lines.append("Generate the next screen. Return ONLY valid JSON.")
    return "\n".join(lines)


def build_first_screen_prompt(name: str, topics, variant: FlowVariant) -> str:
    """Prompt asking only for fragments that answer the variant's fixed opening question."""
    lines = ["## User Context", f"Name: {name}"]
    if topics:
        lines.append(f"Topics: {', '.join(topics)}")
    lines.append("")
    lines.append("## Opening Question")
    lines.append(variant.opening_question(name))
    lines.append("")
    lines.append(
        f"Generate {FIRST_SCREEN_INITIAL} initial and {FIRST_SCREEN_EXPANDED} expanded "
        f"sentence-starter fragments that help {name} answer this question."
    )
    lines.append(
        'Return ONLY valid JSON: { "initialFragments": [...], "expandedFragments": [...] }'
    )
    return "\n".join(lines)


def format_conversation_history(exchanges) -> str:
    """Render exchanges as plain Q:/A: pairs separated by blank lines."""
    return "\n\n".join(
        f"Q: {ex['question']}\nA: {_answer_text(ex['answer'])}"
        for ex in exchanges
    )


def build_discovery_step_prompt(step: int, context: dict, variant: FlowVariant) -> str:
    """Prompt for one step of a step-based discovery flow."""
    intent = STEP_INTENTS[step]
    initial, expanded = intent["counts"]
    skippable = step in variant.skippable_steps
    initial_field, expanded_field = variant.list_fields

    lines = ["## User Context", f"Name: {context['name']}", ""]
    lines.append("## Conversation So Far")
    for exchange in context.get("exchanges", []):
        lines.append(f"Q: {exchange['question']}")
        lines.append(f"A: {_answer_text(exchange['answer'])}")
        lines.append("")

    lines.append("## This Step's Intent")
    lines.append(intent["intent"])
    lines.append("")
    if skippable and intent["skip_rule"]:
        lines.append("## Skip Rule")
        lines.append(intent["skip_rule"])
        lines.append("")
    lines.append("## Chip Format")
    lines.append(intent["chip_format"])
    lines.append("")
    lines.append("Return ONLY valid JSON:")
    skip_value = "true/false" if skippable else "false"
    lines.append(
        f'{{ "skip": {skip_value}, "question": "...", '
        f'"{initial_field}": [{initial} items], "{expanded_field}": [{expanded} items] }}'
    )
    return "\n".join(lines)


def build_affirmation_prompt(
    context: dict,
    variant: FlowVariant,
    approved=(),
    skipped=(),
) -> str:
    """Prompt asking for one batch of affirmations.

    The feedback block is included only when there is feedback to give.
    """
    lines = ["## User Profile"]
    lines.extend(_profile_lines(context, variant, "Primary topic"))
    lines.append("")

    lines.append("## Conversation History")
    lines.append("The following exchanges capture what the user shared during onboarding:")
    lines.append("")
    for i, exchange in enumerate(context.get("exchanges", []), 1):
        lines.append(f"### Exchange {i}")
        lines.append(f'Question asked: "{exchange["question"]}"')
        lines.extend(_detailed_answer_lines(exchange["answer"], variant))
        lines.append("")

    approved = list(approved)
    skipped = list(skipped)
    previous = approved + skipped
    if previous:
        lines.append("## Feedback from Previous Batches")
        lines.append("")
        if approved:
            lines.append("### Approved Affirmations (generate more like these):")
            lines.extend(_numbered(approved))
            lines.append("")
        if skipped:
            lines.append("### Skipped Affirmations (avoid similar patterns):")
            lines.extend(_numbered(skipped))
            lines.append("")
        lines.append("### All Previous Affirmations (do not repeat these):")
        lines.extend(_numbered(previous))
        lines.append("")

    n = variant.batch_size
    lines.append("")
    lines.append(
        f"Generate {n} unique, personalized affirmations based on everything shared above. "
        f"Return ONLY a JSON array of {n} strings."
    )
    return "\n".join(lines)


def build_summary_prompt(context: dict, variant: FlowVariant, affirmation_types=()) -> str:
    """Prompt for a 2-3 sentence journey summary."""
    lines = ["## User Context"]
    lines.extend(_profile_lines(context, variant, "Initial topic"))
    lines.append("")

    lines.append("## Conversation History")
    exchanges = context.get("exchanges", [])
    if not exchanges:
        lines.append("No exchanges recorded.")
    for i, exchange in enumerate(exchanges, 1):
        lines.append(f"### Exchange {i}")
        lines.append(f"Question: {exchange['question']}")
        lines.extend(_detailed_answer_lines(exchange["answer"], variant))
        lines.append("")

    if affirmation_types:
        lines.append("## Affirmation Themes")
        lines.append("The affirmations created for this user touch on these themes:")
        lines.extend(f"- {t}" for t in affirmation_types)
        lines.append("")

    lines.append("")
    lines.append(
        "Write a personalized 2-3 sentence summary for this user based on their "
        "journey above. Return ONLY the summary text."
    )
    return "\n".join(lines)


def template_variables(context: dict, variant: FlowVariant) -> dict:
    """Flatten a context into variables for KV store templates."""
    return {
        "name": context["name"],
        "familiarity": context.get("familiarity", "") if variant.uses_familiarity else "",
        "initial_topic": context.get("initial_topic", ""),
        "topics": list(context.get("topics", [])),
        "screen_number": context.get("screen_number", 1),
        "exchanges": [
            {"question": ex["question"], "answer_text": _answer_text(ex["answer"])}
            for ex in context.get("exchanges", [])
        ],
        "conversation_history": format_conversation_history(context.get("exchanges", [])),
        "batch_size": variant.batch_size,
    }
