"""Discovery agent — asks the next onboarding question and suggests answers.

Three entry points, one per discovery style:

- generate_dynamic_screen: open-ended loop, the agent signals readiness
- generate_first_screen_fragments: fragments for a variant's fixed opening question
- generate_discovery_step: fixed sequence of steps, some of which the agent may skip

None of them raise. Failures come back as an empty result with ``error`` set.
"""

import sys

from afo.agents.agent import create_agent, error_message, resolve_prompt
from afo.utils.continuation import resolve_skip
from afo.utils.parsing import parse_json_object
from afo.utils.prompt_builder import (
    build_discovery_prompt,
    build_discovery_step_prompt,
    build_first_screen_prompt,
    format_conversation_history,
    template_variables,
)
from afo.utils.screens import (
    empty_screen,
    empty_step,
    validate_discovery_step as validate_step_response,
    validate_dynamic_screen,
    validate_first_screen,
)
from afo.utils.validator import validate_context, validate_discovery_step, validate_name
from afo.variants import FlowVariant

PARSE_ERROR = "Failed to parse agent response"

DISCOVERY_INSTRUCTIONS = """\
You are a guided discovery agent for a personalized affirmation app. You ask one \
warm, specific question at a time to learn what the user is going through, and you \
suggest short answers the user can tap.

For every screen:
- Reflect briefly on the previous answer in "reflectiveStatement" (empty on the first screen).
- Ask a single open question that builds on what the user already shared.
- Offer suggestions in the requested format: a short initial list and a longer expanded list.
- Set "readyForAffirmations" to true once you understand the user's situation, feelings \
and what would help them.

Respond ONLY with the JSON object. No markdown fences, no commentary.
"""

STEP_INSTRUCTIONS = """\
You are a guided discovery agent for a personalized affirmation app. For each \
discovery step you receive the step's intent and the conversation so far. Formulate \
a question that pursues the intent and references previous answers naturally, and \
generate chips in the required format.

Only skip a step when its skip rule says so; otherwise always set "skip" to false.
Respond ONLY with the JSON object. No markdown fences, no commentary.
"""


def _agent_id(variant: FlowVariant) -> str:
    return f"{variant.id}-discovery"


def generate_dynamic_screen(context: dict, variant: FlowVariant,
                            implementation: str = "default") -> dict:
    """Generate the next dynamic discovery screen for ``context``."""
    tag = variant.id
    try:
        validate_context(context, variant)
        if variant.fixed_opening_question and not context.get("exchanges"):
            raise ValueError("At least one exchange is required for screens 2+")
    except ValueError as exc:
        return empty_screen(variant, str(exc))

    try:
        prompt = resolve_prompt(
            "prompt_dynamic",
            _agent_id(variant),
            implementation,
            template_variables(context, variant),
            fallback=lambda: build_discovery_prompt(context, variant),
            tag=tag,
        )
        agent = create_agent(_agent_id(variant), implementation, DISCOVERY_INSTRUCTIONS)

        print(f"[{tag}] Screen number: {context['screen_number']}", file=sys.stderr)
        print(f"[{tag}] Exchanges count: {len(context['exchanges'])}", file=sys.stderr)
        print(f"[{tag}] User prompt: {prompt}", file=sys.stderr)

        text = agent.generate(prompt)["text"]
        print(f"[{tag}] Response length: {len(text)}", file=sys.stderr)

        response = parse_json_object(text, lambda data: validate_dynamic_screen(data, variant))
        if response is None:
            print(f"[{tag}] Failed to parse response: {text[:500]}", file=sys.stderr)
            return empty_screen(variant, PARSE_ERROR)

        print(f"[{tag}] readyForAffirmations: {response['readyForAffirmations']}", file=sys.stderr)
        return response
    except Exception as exc:
        message = error_message(exc)
        print(f"[{tag}] Error generating dynamic screen: {message}", file=sys.stderr)
        return empty_screen(variant, message)


def generate_first_screen_fragments(name: str, variant: FlowVariant, topics=(),
                                    implementation: str = "default") -> dict:
    """Generate fragments for the fixed opening question of ``variant``."""
    tag = variant.id
    try:
        name = validate_name(name)
    except ValueError as exc:
        return {"initialFragments": [], "expandedFragments": [], "error": str(exc)}

    try:
        prompt = resolve_prompt(
            "prompt_first_screen",
            _agent_id(variant),
            implementation,
            {"name": name, "topics": list(topics),
             "opening_question": variant.opening_question(name)},
            fallback=lambda: build_first_screen_prompt(name, topics, variant),
            tag=tag,
        )
        agent = create_agent(_agent_id(variant), implementation, DISCOVERY_INSTRUCTIONS)
        text = agent.generate(prompt)["text"]
        print(f"[{tag}] First screen response length: {len(text)}", file=sys.stderr)

        response = parse_json_object(text, validate_first_screen)
        if response is None:
            print(f"[{tag}] Failed to parse first screen: {text[:500]}", file=sys.stderr)
            return {"initialFragments": [], "expandedFragments": [], "error": PARSE_ERROR}
        return response
    except Exception as exc:
        message = error_message(exc)
        print(f"[{tag}] Error generating first screen fragments: {message}", file=sys.stderr)
        return {"initialFragments": [], "expandedFragments": [], "error": message}


def generate_discovery_step(step: int, context: dict, variant: FlowVariant,
                            implementation: str = "default") -> dict:
    """Generate one step of a step-based discovery flow.

    Only steps in ``variant.skippable_steps`` can come back with skip=True.
    """
    tag = f"{variant.id}-discovery"
    try:
        validate_discovery_step(step, variant)
        validate_name(context.get("name"))
        if not context.get("exchanges"):
            raise ValueError("At least one exchange (goal) is required")
    except ValueError as exc:
        return empty_step(variant, str(exc))

    try:
        prompt = resolve_prompt(
            f"prompt_step_{step}",
            _agent_id(variant),
            implementation,
            {"name": context["name"],
             "conversation_history": format_conversation_history(context["exchanges"])},
            fallback=lambda: build_discovery_step_prompt(step, context, variant),
            tag=tag,
        )
        agent = create_agent(_agent_id(variant), implementation, STEP_INSTRUCTIONS)

        print(f"[{tag}] Step number: {step}", file=sys.stderr)
        print(f"[{tag}] Exchanges count: {len(context['exchanges'])}", file=sys.stderr)
        print(f"[{tag}] User prompt: {prompt}", file=sys.stderr)

        text = agent.generate(prompt)["text"]
        print(f"[{tag}] Response length: {len(text)}", file=sys.stderr)

        response = parse_json_object(text, lambda data: validate_step_response(data, variant))
        if response is None:
            print(f"[{tag}] Failed to parse discovery response: {text[:500]}", file=sys.stderr)
            return empty_step(variant, PARSE_ERROR)

        response["skip"] = resolve_skip(step, response["skip"], variant.skippable_steps)
        print(f"[{tag}] Skip: {response['skip']}", file=sys.stderr)
        return response
    except Exception as exc:
        message = error_message(exc)
        print(f"[{tag}] Error generating discovery step: {message}", file=sys.stderr)
        return empty_step(variant, message)
