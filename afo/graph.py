"""LangGraph StateGraph definition for the onboarding discovery loop.

discover -> answer -> discover ... until the continuation policy says stop,
then (optional pre-summary) -> affirm -> (optional summary). The compiled
graph runs a whole session from scripted answers; the CLI drives the same
nodes one at a time with run_single_step.
"""

from langgraph.graph import END, StateGraph

from afo.agents.affirmation import generate_affirmation_batch, generate_affirmations
from afo.agents.discovery import (
    generate_discovery_step,
    generate_dynamic_screen,
    generate_first_screen_fragments,
)
from afo.agents.summary import (
    generate_completion_summary,
    generate_pre_summary,
    generate_review_summary,
)
from afo.config import get_config
from afo.state import Answer, OnboardingState
from afo.utils.continuation import should_proceed_to_affirmations
from afo.utils.validator import validate_name
from afo.variants import FlowVariant, get_variant


def new_session(
    variant_id: str,
    name: str,
    implementation: str | None = None,
    familiarity: str | None = None,
    initial_topic: str | None = None,
    topics: list[str] | None = None,
    scripted_answers: list[Answer] | None = None,
) -> OnboardingState:
    """Create the initial state for one onboarding session.

    Raises KeyError for an unknown variant and ValueError for an empty name.
    """
    variant = get_variant(variant_id)
    context = {"name": validate_name(name), "exchanges": [], "screen_number": 1}
    if familiarity and variant.uses_familiarity:
        context["familiarity"] = familiarity
    if initial_topic:
        context["initial_topic"] = initial_topic
    if topics:
        context["topics"] = list(topics)

    return {
        "variant": variant.id,
        "implementation": implementation or get_config().get("default_implementation", "default"),
        "context": context,
        "current_screen": None,
        "step_index": 0,
        "pending_answer": None,
        "scripted_answers": list(scripted_answers or []),
        "proceed": False,
        "is_loading": False,
        "error": None,
        "batch_number": 0,
        "affirmations": [],
        "approved": [],
        "skipped": [],
        "pre_summary": "",
        "summary": "",
        "phase": "discovery",
    }


def _opening_screen(variant: FlowVariant, name: str) -> dict:
    initial, expanded = variant.list_fields
    return {
        "reflectiveStatement": "",
        "question": variant.opening_question(name),
        initial: [],
        expanded: [],
        "readyForAffirmations": False,
    }


def _discover_steps(state: OnboardingState, variant: FlowVariant) -> dict:
    """Fetch the next step screen, moving past steps the agent skips."""
    step_index = state["step_index"]
    while step_index < len(variant.discovery_steps):
        step = variant.discovery_steps[step_index]
        screen = generate_discovery_step(step, state["context"], variant, state["implementation"])
        if screen.get("error"):
            return {"error": screen["error"], "current_screen": None, "step_index": step_index}
        if not screen["skip"]:
            return {"current_screen": screen, "error": None, "step_index": step_index,
                    "proceed": False}
        step_index += 1

    return {"current_screen": None, "error": None, "step_index": step_index, "proceed": True}


def discover_node(state: OnboardingState) -> dict:
    """Fetch the screen awaiting an answer. Clears is_loading on every path."""
    variant = get_variant(state["variant"])
    context = state["context"]
    has_exchanges = bool(context["exchanges"])

    if variant.fixed_opening_question and not has_exchanges:
        screen = _opening_screen(variant, context["name"])
        if not variant.step_based:
            fragments = generate_first_screen_fragments(
                context["name"], variant, context.get("topics", ()), state["implementation"]
            )
            if fragments.get("error"):
                return {"error": fragments["error"], "current_screen": None, "is_loading": False}
            screen["initialFragments"] = fragments["initialFragments"]
            screen["expandedFragments"] = fragments["expandedFragments"]
        return {"current_screen": screen, "error": None, "is_loading": False}

    if variant.step_based:
        return {**_discover_steps(state, variant), "is_loading": False}

    screen = generate_dynamic_screen(context, variant, state["implementation"])
    if screen.get("error"):
        return {"error": screen["error"], "current_screen": None, "is_loading": False}
    return {"current_screen": screen, "error": None, "is_loading": False}


def record_answer(state: OnboardingState, answer: Answer) -> dict:
    """Append the answer to the current screen and apply the continuation policy.

    Returns the state updates; the context is copied, never mutated in place.
    """
    variant = get_variant(state["variant"])
    screen = state["current_screen"]
    if screen is None:
        raise ValueError("No screen is awaiting an answer")

    context = state["context"]
    answered_opening = not context["exchanges"]
    exchanges = [*context["exchanges"], {"question": screen["question"], "answer": answer}]
    new_context = {**context, "exchanges": exchanges,
                   "screen_number": context["screen_number"] + 1}

    step_index = state["step_index"]
    if variant.step_based:
        if not answered_opening:
            step_index += 1
        proceed = step_index >= len(variant.discovery_steps)
    else:
        low, high = variant.screen_bounds()
        proceed = should_proceed_to_affirmations(
            len(exchanges), screen.get("readyForAffirmations", False), low, high
        )

    return {
        "context": new_context,
        "current_screen": None,
        "pending_answer": None,
        "step_index": step_index,
        "proceed": proceed,
    }


def default_answer(screen: dict, variant: FlowVariant) -> Answer:
    """Answer taking the first initial suggestion of ``screen``, if any."""
    initial, _ = variant.list_fields
    suggestions = screen.get(initial) or []
    return {"text": "", variant.selected_key: suggestions[:1]}


def answer_node(state: OnboardingState) -> dict:
    """Answer the current screen from pending, scripted or default input."""
    variant = get_variant(state["variant"])
    scripted = list(state["scripted_answers"])
    if state["pending_answer"] is not None:
        answer = state["pending_answer"]
    elif scripted:
        answer = scripted.pop(0)
    else:
        answer = default_answer(state["current_screen"], variant)

    return {**record_answer(state, answer), "scripted_answers": scripted}


def affirm_node(state: OnboardingState) -> dict:
    """Generate the next batch of affirmations. Clears is_loading on every path."""
    variant = get_variant(state["variant"])
    batch_number = state["batch_number"] + 1
    if variant.feedback:
        result = generate_affirmation_batch(
            state["context"], variant, batch_number,
            state["approved"], state["skipped"], state["implementation"],
        )
    else:
        result = generate_affirmations(state["context"], variant, state["implementation"])

    if result.get("error"):
        return {"error": result["error"], "is_loading": False}
    return {
        "affirmations": result["affirmations"],
        "batch_number": batch_number,
        "error": None,
        "phase": "review",
        "is_loading": False,
    }


def record_verdict(state: OnboardingState, affirmation: str, approved: bool) -> dict:
    """Record the user's approve/skip decision for one affirmation of the current batch."""
    if affirmation not in state["affirmations"]:
        raise ValueError(f"Affirmation is not in the current batch: {affirmation!r}")
    if approved:
        return {"approved": [*state["approved"], affirmation]}
    return {"skipped": [*state["skipped"], affirmation]}


def summarize_node(state: OnboardingState) -> dict:
    """Pre-summary before the first batch; completion or review summary after."""
    variant = get_variant(state["variant"])
    context = state["context"]
    implementation = state["implementation"]

    if state["batch_number"] == 0:
        return {"pre_summary": generate_pre_summary(context, variant, implementation),
                "is_loading": False}
    if "review" in variant.summaries:
        summary = generate_review_summary(context, variant, (), implementation)
    else:
        summary = generate_completion_summary(context, variant, implementation)
    return {"summary": summary, "phase": "complete", "is_loading": False}


# --- Routing ---

def _after_discovery(state: OnboardingState) -> str:
    variant = get_variant(state["variant"])
    if "pre" in variant.summaries:
        return "summarize"
    return "affirm"


def route_after_discover(state: OnboardingState) -> str:
    """error -> end, steps exhausted by skips -> affirmations, otherwise wait for an answer."""
    if state["error"]:
        return "end"
    if state["current_screen"] is None and state["proceed"]:
        return _after_discovery(state)
    return "answer"


def route_after_answer(state: OnboardingState) -> str:
    if not state["proceed"]:
        return "discover"
    return _after_discovery(state)


def route_after_affirm(state: OnboardingState) -> str:
    if state["error"]:
        return "end"
    variant = get_variant(state["variant"])
    if "post" in variant.summaries or "review" in variant.summaries:
        return "summarize"
    return "end"


def route_after_summarize(state: OnboardingState) -> str:
    """A summary before the first batch leads on to affirmation generation."""
    if state["batch_number"] == 0:
        return "affirm"
    return "end"


# --- Build the graph ---

workflow = StateGraph(OnboardingState)

workflow.add_node("discover", discover_node)
workflow.add_node("answer", answer_node)
workflow.add_node("affirm", affirm_node)
workflow.add_node("summarize", summarize_node)

workflow.set_entry_point("discover")

workflow.add_conditional_edges(
    "discover",
    route_after_discover,
    {"end": END, "answer": "answer", "summarize": "summarize", "affirm": "affirm"},
)
workflow.add_conditional_edges(
    "answer",
    route_after_answer,
    {"discover": "discover", "summarize": "summarize", "affirm": "affirm"},
)
workflow.add_conditional_edges(
    "affirm",
    route_after_affirm,
    {"end": END, "summarize": "summarize"},
)
workflow.add_conditional_edges(
    "summarize",
    route_after_summarize,
    {"end": END, "affirm": "affirm"},
)

graph = workflow.compile()


# --- Step-execution helpers for the interactive CLI ---

_NODE_FNS = {
    "discover": discover_node,
    "answer": answer_node,
    "affirm": affirm_node,
    "summarize": summarize_node,
}


def run_single_step(state: OnboardingState, node_name: str) -> OnboardingState:
    """Run a single node and return the updated state.

    Sets is_loading for the duration of the call; every node clears it.
    """
    node_fn = _NODE_FNS[node_name]
    updates = node_fn({**state, "is_loading": True})
    return {**state, **updates}
