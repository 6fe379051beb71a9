"""Affirmation agent — turns the gathered context into personalized affirmations.

Variants with feedback generate in batches: each batch sees what the user
approved and skipped so far. Variants without feedback generate one full set.
"""

import sys

from afo.agents.agent import create_agent, error_message, resolve_prompt
from afo.utils.parsing import parse_affirmations
from afo.utils.prompt_builder import build_affirmation_prompt, template_variables
from afo.utils.validator import validate_context
from afo.variants import FlowVariant

PARSE_ERROR = "Failed to parse affirmations from agent response"

AFFIRMATION_INSTRUCTIONS = """\
You write personalized affirmations. Use the user's own words, situation and \
feelings from the conversation. Each affirmation is a single first-person, \
present-tense sentence, specific to this user, and no two are alike.

When feedback from previous batches is given, write more like the approved ones, \
avoid the patterns of the skipped ones, and never repeat a previous affirmation.

Respond ONLY with a JSON array of strings. No markdown fences, no commentary.
"""


def generate_affirmation_batch(
    context: dict,
    variant: FlowVariant,
    batch_number: int = 1,
    approved=(),
    skipped=(),
    implementation: str = "default",
) -> dict:
    """Generate one batch of ``variant.batch_size`` affirmations.

    Returns {"affirmations": [...]} or {"affirmations": [], "error": str}.
    Feedback is dropped for variants that don't use it.
    """
    tag = f"{variant.id}-affirmations"
    try:
        validate_context(context, variant, require_exchanges=True)
    except ValueError as exc:
        return {"affirmations": [], "error": str(exc)}

    if not variant.feedback:
        approved, skipped = (), ()
    approved, skipped = list(approved), list(skipped)
    has_feedback = bool(approved or skipped)

    try:
        variables = template_variables(context, variant)
        variables.update(
            approved_affirmations=approved,
            skipped_affirmations=skipped,
            all_previous_affirmations=approved + skipped,
            batch_number=batch_number,
        )
        prompt = resolve_prompt(
            "prompt_with_feedback" if has_feedback else "prompt",
            f"{variant.id}-affirmation",
            implementation,
            variables,
            fallback=lambda: build_affirmation_prompt(context, variant, approved, skipped),
            tag=tag,
        )
        agent = create_agent(f"{variant.id}-affirmation", implementation, AFFIRMATION_INSTRUCTIONS)

        print(f"[{tag}] Implementation: {implementation}", file=sys.stderr)
        print(f"[{tag}] Batch number: {batch_number}", file=sys.stderr)
        print(f"[{tag}] Exchanges count: {len(context['exchanges'])}", file=sys.stderr)
        print(f"[{tag}] Approved count: {len(approved)}", file=sys.stderr)
        print(f"[{tag}] Skipped count: {len(skipped)}", file=sys.stderr)

        text = agent.generate(prompt)["text"]
        print(f"[{tag}] Response length: {len(text)}", file=sys.stderr)

        affirmations = parse_affirmations(text)
        if not affirmations:
            print(f"[{tag}] Failed to parse affirmations from response: {text[:500]}",
                  file=sys.stderr)
            return {"affirmations": [], "error": PARSE_ERROR}

        print(f"[{tag}] Parsed affirmations count: {len(affirmations)}", file=sys.stderr)
        return {"affirmations": affirmations}
    except Exception as exc:
        message = error_message(exc)
        print(f"[{tag}] Error generating affirmations: {message}", file=sys.stderr)
        return {"affirmations": [], "error": message}


def generate_affirmations(context: dict, variant: FlowVariant,
                          implementation: str = "default") -> dict:
    """Generate the full set of affirmations in a single call, without feedback."""
    return generate_affirmation_batch(context, variant, implementation=implementation)
