"""Onboarding flow variants — one parameterized protocol, many experiments.

Each variant differs only in the parameters below: input modality, screen
bounds, batch size, which profile fields it collects, and which discovery steps
the agent may skip.
"""

from dataclasses import dataclass, field
from typing import Literal

from afo.config import get_config

Modality = Literal["chips", "fragments"]
SummaryKind = Literal["pre", "post", "review"]

_LIST_FIELDS = {
    "chips": ("initialChips", "expandedChips"),
    "fragments": ("initialFragments", "expandedFragments"),
}


@dataclass(frozen=True)
class FlowVariant:
    id: str
    modality: Modality
    batch_size: int
    min_screens: int | None = None  # None = config min_screens
    max_screens: int | None = None  # None = config max_screens
    uses_familiarity: bool = True
    requires_topic: bool = True
    uses_topics: bool = False
    accepts_alternate_shape: bool = False
    fixed_opening_question: str = ""
    discovery_steps: tuple[int, ...] = ()
    skippable_steps: frozenset[int] = field(default_factory=frozenset)
    feedback: bool = True  # Batches carry approved/skipped feedback.
    summaries: tuple[SummaryKind, ...] = ()

    @property
    def list_fields(self) -> tuple[str, str]:
        """Canonical (initial, expanded) field names for this modality."""
        return _LIST_FIELDS[self.modality]

    @property
    def alternate_list_fields(self) -> tuple[str, str]:
        other = "fragments" if self.modality == "chips" else "chips"
        return _LIST_FIELDS[other]

    @property
    def selected_key(self) -> str:
        return f"selected_{self.modality}"

    @property
    def step_based(self) -> bool:
        return bool(self.discovery_steps)

    def opening_question(self, name: str) -> str:
        return self.fixed_opening_question.format(name=name)

    def screen_bounds(self) -> tuple[int, int]:
        config = get_config()
        low = self.min_screens if self.min_screens is not None else config.get("min_screens", 2)
        high = self.max_screens if self.max_screens is not None else config.get("max_screens", 5)
        return low, high


VARIANTS: dict[str, FlowVariant] = {
    v.id: v
    for v in (
        FlowVariant(id="fo-04", modality="chips", batch_size=10),
        FlowVariant(
            id="fo-05",
            modality="fragments",
            batch_size=10,
            summaries=("pre", "post"),
        ),
        FlowVariant(
            id="fo-06",
            modality="fragments",
            batch_size=10,
            uses_familiarity=False,
            requires_topic=False,
            fixed_opening_question="What's going on in your life right now, {name}?",
            summaries=("pre", "post"),
        ),
        FlowVariant(
            id="fo-07",
            modality="chips",
            batch_size=20,
            accepts_alternate_shape=True,
            feedback=False,
            summaries=("review",),
        ),
        FlowVariant(
            id="fo-09",
            modality="fragments",
            batch_size=5,
            uses_familiarity=False,
            requires_topic=False,
            uses_topics=True,
            fixed_opening_question=(
                "What's going on in your life right now that made you seek out affirmations?"
            ),
        ),
        FlowVariant(
            id="fo-11",
            modality="chips",
            batch_size=5,
            uses_familiarity=False,
            requires_topic=False,
            fixed_opening_question="What's your main goal with affirmations today, {name}?",
            discovery_steps=(5, 6, 7),
            skippable_steps=frozenset({5}),
        ),
    )
}


def get_variant(variant_id: str) -> FlowVariant:
    """Look up a variant by id. Raises KeyError for unknown ids."""
    try:
        return VARIANTS[variant_id]
    except KeyError:
        raise KeyError(
            f"Unknown variant '{variant_id}'. Must be one of: {sorted(VARIANTS)}"
        ) from None
