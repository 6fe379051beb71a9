"""Input validation — checks session inputs before any agent call.

Each check raises ValueError with a message naming the missing field. Entry
points turn that message into the ``error`` of their result.
"""

from afo.variants import FlowVariant


def validate_name(name) -> str:
    """Return the stripped name. Raises ValueError if empty or not a string."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Name is required")
    return name.strip()


def validate_context(context: dict, variant: FlowVariant, require_exchanges: bool = False) -> None:
    """Validate a GatheringContext for the given variant.

    Checks the name, the initial topic when the variant requires one, and
    (for affirmation generation) that at least one exchange was recorded.
    """
    validate_name(context.get("name"))

    if variant.requires_topic:
        topic = context.get("initial_topic")
        if not isinstance(topic, str) or not topic.strip():
            raise ValueError("Initial topic is required")

    if require_exchanges and not context.get("exchanges"):
        raise ValueError("At least one exchange is required")


def validate_discovery_step(step, variant: FlowVariant) -> int:
    """Return the step if the variant defines it as a discovery step."""
    if step not in variant.discovery_steps:
        allowed = ", ".join(str(s) for s in variant.discovery_steps)
        raise ValueError(
            f"Invalid step number: {step}. Discovery steps are only {allowed}."
        )
    return step
