"""Discovery continuation policy — decides when the discovery loop stops."""

import sys


def should_proceed_to_affirmations(
    screen_number: int,
    agent_ready: bool,
    min_screens: int = 2,
    max_screens: int = 5,
) -> bool:
    """Decide whether to stop asking discovery questions.

    ``screen_number`` is the count of screens answered so far, including the
    one just answered.

    - below ``min_screens``: never proceed, whatever the agent says
    - at or above ``max_screens``: always proceed
    - in between: follow the agent's readyForAffirmations flag
    """
    if screen_number < min_screens:
        return False
    if screen_number >= max_screens:
        return True
    return bool(agent_ready)


def resolve_skip(step: int, agent_skip: bool, skippable_steps) -> bool:
    """Return the effective skip flag for a discovery step.

    Only steps listed in ``skippable_steps`` may be skipped. For any other step
    the agent's flag is overridden to False.
    """
    if step in skippable_steps:
        return bool(agent_skip)
    if agent_skip:
        print(
            f"[afo] Warning: agent returned skip=true for step {step} — forcing skip=false",
            file=sys.stderr,
        )
    return False
