"""Entry point: runs an onboarding session in the terminal, then writes the collection.

    python -m afo.main [--variant fo-07] [--implementation default] [--answers answers.yaml]

Without --answers the session is an interactive wizard. With --answers the
compiled graph runs end to end from a YAML file of the form:

    name: Sam
    familiarity: some
    initial_topic: Work stress
    answers:
      - text: Deadlines keep piling up
        selected_chips: [Overwhelmed]
"""

import sys
from pathlib import Path

import yaml

from afo.config import get_config
from afo.graph import (
    graph,
    new_session,
    record_answer,
    record_verdict,
    route_after_answer,
    route_after_discover,
    run_single_step,
)
from afo.state import Answer, OnboardingState
from afo.utils.formatter import write_collection
from afo.variants import FlowVariant, get_variant

_FAMILIARITY = ["new", "some", "very"]


def _ask_yes_no(prompt: str, default: bool = True) -> bool:
    suffix = " [Y/n] " if default else " [y/N] "
    reply = input(prompt + suffix).strip().lower()
    if not reply:
        return default
    return reply.startswith("y")


def _run_with_retry(state: OnboardingState, node_name: str) -> OnboardingState:
    """Run a node, offering a manual retry while it reports an error."""
    while True:
        state = run_single_step(state, node_name)
        if not state["error"]:
            return state
        print(f"\n[afo] {state['error']}")
        if not _ask_yes_no("Try again?"):
            sys.exit(1)


def _collect_profile(variant: FlowVariant) -> dict:
    profile = {}
    while not profile.get("name"):
        profile["name"] = input("What's your name? ").strip()

    if variant.uses_familiarity:
        print("How familiar are you with affirmations?")
        for i, level in enumerate(_FAMILIARITY, 1):
            print(f"  {i}. {level}")
        while True:
            choice = input("Your choice (number): ").strip()
            if choice.isdigit() and 1 <= int(choice) <= len(_FAMILIARITY):
                profile["familiarity"] = _FAMILIARITY[int(choice) - 1]
                break
            print(f"Please enter a number between 1 and {len(_FAMILIARITY)}.")

    if variant.requires_topic:
        while not profile.get("initial_topic"):
            profile["initial_topic"] = input("What would you like to focus on? ").strip()

    if variant.uses_topics:
        raw = input("Topics you'd like affirmations about (comma separated): ")
        profile["topics"] = [t.strip() for t in raw.split(",") if t.strip()]

    return profile


def _collect_answer(screen: dict, variant: FlowVariant) -> Answer:
    """Show a discovery screen and read the user's answer."""
    initial_field, expanded_field = variant.list_fields
    print()
    if screen.get("reflectiveStatement"):
        print(screen["reflectiveStatement"])
    print(screen["question"])

    suggestions = list(screen.get(initial_field, []))
    if suggestions:
        for i, suggestion in enumerate(suggestions, 1):
            print(f"  {i}. {suggestion}")
        if screen.get(expanded_field):
            print("  m. Show more")

    selected: list[str] = []
    while suggestions:
        choice = input("Pick numbers (comma separated), or press Enter to type instead: ").strip()
        if choice.lower() == "m" and len(suggestions) == len(screen.get(initial_field, [])):
            offset = len(suggestions)
            suggestions.extend(screen.get(expanded_field, []))
            for i, suggestion in enumerate(suggestions[offset:], offset + 1):
                print(f"  {i}. {suggestion}")
            continue
        if not choice:
            break
        numbers = [c.strip() for c in choice.split(",")]
        if all(n.isdigit() and 1 <= int(n) <= len(suggestions) for n in numbers):
            selected = [suggestions[int(n) - 1] for n in numbers]
            break
        print(f"Please enter numbers between 1 and {len(suggestions)}.")

    text = input("Anything to add? ").strip()
    return {"text": text, variant.selected_key: selected}


def _review_batch(state: OnboardingState) -> OnboardingState:
    print(f"\n--- Batch {state['batch_number']} ---\n")
    for affirmation in state["affirmations"]:
        print(f'"{affirmation}"')
        approved = _ask_yes_no("Keep this one?")
        state = {**state, **record_verdict(state, affirmation, approved)}
    return state


def run_interactive(variant: FlowVariant, implementation: str | None = None) -> OnboardingState:
    """Drive one session node by node, reading answers and verdicts from the terminal."""
    profile = _collect_profile(variant)
    state = new_session(variant.id, implementation=implementation, **profile)

    route = "discover"
    while route == "discover":
        state = _run_with_retry(state, "discover")
        route = route_after_discover(state)
        if route != "answer":
            break
        answer = _collect_answer(state["current_screen"], variant)
        state = {**state, **record_answer(state, answer)}
        route = route_after_answer(state)

    if route == "summarize":
        state = run_single_step(state, "summarize")
        if state["pre_summary"]:
            print(f"\n{state['pre_summary']}")

    while True:
        state = _run_with_retry(state, "affirm")
        state = _review_batch(state)
        if not variant.feedback or not _ask_yes_no("Generate more affirmations?", default=False):
            break

    if "post" in variant.summaries or "review" in variant.summaries:
        state = run_single_step(state, "summarize")
        if state["summary"]:
            print(f"\n{state['summary']}")

    return {**state, "phase": "complete"}


def run_scripted(variant: FlowVariant, answers_path: Path,
                 implementation: str | None = None) -> OnboardingState:
    """Run the compiled graph end to end from a YAML answers file."""
    script = yaml.safe_load(answers_path.read_text(encoding="utf-8")) or {}
    state = new_session(
        variant.id,
        script.get("name", ""),
        implementation=implementation,
        familiarity=script.get("familiarity"),
        initial_topic=script.get("initial_topic"),
        topics=script.get("topics"),
        scripted_answers=script.get("answers", []),
    )
    final_state = graph.invoke(state)
    if final_state["error"]:
        print(f"[afo] Session ended with error: {final_state['error']}", file=sys.stderr)
    return final_state


def _pop_option(args: list[str], flag: str) -> str | None:
    if flag not in args:
        return None
    i = args.index(flag)
    if i + 1 >= len(args):
        print(f"Missing value for {flag}", file=sys.stderr)
        sys.exit(2)
    value = args[i + 1]
    del args[i:i + 2]
    return value


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    variant_id = _pop_option(args, "--variant") or get_config()["default_variant"]
    implementation = _pop_option(args, "--implementation")
    answers = _pop_option(args, "--answers")

    try:
        variant = get_variant(variant_id)
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        sys.exit(2)

    if answers:
        final_state = run_scripted(variant, Path(answers), implementation)
    else:
        final_state = run_interactive(variant, implementation)

    output_path = write_collection(final_state)
    print(f"[afo] Variant: {final_state['variant']}")
    print(f"[afo] Screens answered: {len(final_state['context']['exchanges'])}")
    print(f"[afo] Approved: {len(final_state['approved'])}")
    print(f"[afo] Output written to: {output_path}")


if __name__ == "__main__":
    main()
