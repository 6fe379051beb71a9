"""Session state — one explicit record per onboarding session, passed through the controller.

Internal keys are snake_case. Agent results keep the camelCase field names the
discovery agent emits in its JSON.
"""

from typing import Literal, NotRequired, TypedDict

Familiarity = Literal["new", "some", "very"]


class Answer(TypedDict, total=False):
    text: str  # Free-typed text.
    selected_chips: list[str]  # Chip variants.
    selected_fragments: list[str]  # Fragment variants.


class Exchange(TypedDict):
    question: str
    answer: Answer


class GatheringContext(TypedDict):
    name: str  # Set once at session start.
    familiarity: NotRequired[Familiarity]
    initial_topic: NotRequired[str]
    topics: NotRequired[list[str]]
    exchanges: list[Exchange]  # Append-only, one per answered screen.
    screen_number: int  # 1-indexed. +1 per accepted answer.


class DynamicScreenResponse(TypedDict, total=False):
    reflectiveStatement: str  # Empty string on the first screen.
    question: str
    initialChips: list[str]
    expandedChips: list[str]
    initialFragments: list[str]
    expandedFragments: list[str]
    readyForAffirmations: bool
    error: str


class DiscoveryStepResponse(TypedDict, total=False):
    skip: bool
    question: str
    initialChips: list[str]
    expandedChips: list[str]
    error: str


class FirstScreenFragments(TypedDict, total=False):
    initialFragments: list[str]
    expandedFragments: list[str]
    error: str


class AffirmationBatchResult(TypedDict, total=False):
    affirmations: list[str]
    error: str


class OnboardingState(TypedDict):
    variant: str  # Variant id, e.g. "fo-07". Immutable after init.
    implementation: str  # KV store implementation name.
    context: GatheringContext
    current_screen: dict | None  # Screen awaiting an answer.
    step_index: int  # Position in variant.discovery_steps (step-based variants).
    pending_answer: Answer | None
    scripted_answers: list[Answer]  # Consumed in order by scripted runs.
    proceed: bool  # Result of the continuation policy for the last answer.
    is_loading: bool
    error: str | None
    batch_number: int  # Batches generated so far.
    affirmations: list[str]  # Latest batch awaiting review.
    approved: list[str]
    skipped: list[str]
    pre_summary: str  # Before the first batch, for variants that show one.
    summary: str  # Completion or review summary.
    phase: Literal["discovery", "review", "complete"]
