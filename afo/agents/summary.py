"""Summary agents — short plain-text recaps of the user's onboarding journey.

Pre-summaries speak about the affirmations to come; completion and review
summaries about the ones already created. A summary is decoration, so every
function here returns "" instead of an error.
"""

import sys

from afo.agents.agent import create_agent, error_message, resolve_prompt
from afo.utils.prompt_builder import build_summary_prompt, template_variables
from afo.variants import FlowVariant

PRE_SUMMARY_INSTRUCTIONS = """\
You write a warm 2-3 sentence summary of what the user shared during onboarding. \
Speak to the user directly and in the future tense about the affirmations being \
prepared for them. Return ONLY the summary text.
"""

POST_SUMMARY_INSTRUCTIONS = """\
You write a warm 2-3 sentence summary of the user's onboarding journey. Speak to \
the user directly and in the present or past tense about the affirmations they \
now have. Return ONLY the summary text.
"""


def _summarize(context: dict, variant: FlowVariant, kind: str, instructions: str,
               implementation: str, affirmation_types=()) -> str:
    agent_id = f"{variant.id}-{kind}-summary"
    try:
        variables = template_variables(context, variant)
        variables["affirmation_types"] = list(affirmation_types)
        prompt = resolve_prompt(
            "prompt",
            agent_id,
            implementation,
            variables,
            fallback=lambda: build_summary_prompt(context, variant, affirmation_types),
            tag=agent_id,
        )
        agent = create_agent(agent_id, implementation, instructions)

        print(f"[{agent_id}] Implementation: {implementation}", file=sys.stderr)
        print(f"[{agent_id}] Exchanges count: {len(context.get('exchanges', []))}",
              file=sys.stderr)

        text = agent.generate(prompt)["text"]
        print(f"[{agent_id}] Summary: {text[:200]}", file=sys.stderr)
        return text.strip()
    except Exception as exc:
        print(f"[{agent_id}] Error generating summary: {error_message(exc)}", file=sys.stderr)
        return ""


def generate_pre_summary(context: dict, variant: FlowVariant,
                         implementation: str = "default") -> str:
    """Summary shown before affirmations are generated."""
    return _summarize(context, variant, "pre", PRE_SUMMARY_INSTRUCTIONS, implementation)


def generate_completion_summary(context: dict, variant: FlowVariant,
                                implementation: str = "default") -> str:
    """Summary shown once the user finishes curating."""
    return _summarize(context, variant, "post", POST_SUMMARY_INSTRUCTIONS, implementation)


def generate_review_summary(context: dict, variant: FlowVariant, affirmation_types=(),
                            implementation: str = "default") -> str:
    """Summary for the review screen, mentioning the themes of the affirmations."""
    return _summarize(context, variant, "post", POST_SUMMARY_INSTRUCTIONS, implementation,
                      affirmation_types)
