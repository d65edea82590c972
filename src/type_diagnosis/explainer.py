"""Explainer - composes the human-readable diagnosis message.

The message is always five sentences in a fixed order: strength, caution,
utilization, utilization detail and next action. Caution and next action
are driven by the strongest penalty and motivation dimensions.
"""

import re
from collections.abc import Mapping
from typing import Optional

from .schema import (
    MOTIVATION_PREFIX,
    CategoryProfile,
    ScoringConfig,
    VectorProfile,
)

# Full stops in ASCII, ideographic and fullwidth forms
_TRAILING_STOPS = re.compile(r"[.。．]+$")


def trim_ending_punctuation(text: str) -> str:
    """Strip surrounding whitespace and any trailing full stops."""
    return _TRAILING_STOPS.sub("", text.strip()).rstrip()


def select_top_penalty(penalties: Mapping[str, float]) -> Optional[str]:
    """Dimension with the strictly largest positive penalty.

    Ties keep the first dimension found; returns None when no penalty is
    above zero.
    """
    top_key = None
    top_score = 0.0
    for dimension, value in penalties.items():
        if value > top_score:
            top_score = value
            top_key = dimension
    return top_key


def select_top_motivation(normalized: Mapping[str, float]) -> Optional[str]:
    """Motivation dimension with the largest value.

    Uses ``>=``, so ties go to the last dimension found and a motivation
    dimension scoring zero still wins when nothing scores higher. Tie
    handling is the opposite of select_top_penalty.
    """
    top_key = None
    top_score = 0.0
    for dimension, value in normalized.items():
        if not dimension.startswith(MOTIVATION_PREFIX):
            continue
        if value >= top_score:
            top_score = value
            top_key = dimension
    return top_key


class MessageComposer:
    """Builds diagnosis messages from profile text and score maps."""

    def __init__(self, config: ScoringConfig):
        self.config = config
        self.message_config = config.message
        self.templates = config.message.templates

    def compose(
        self,
        category: CategoryProfile,
        vector: VectorProfile,
        penalties: Mapping[str, float],
        normalized: Mapping[str, float],
    ) -> str:
        """Compose the message for a diagnosis.

        Args:
            category: Winning category profile
            vector: Winning vector profile
            penalties: Normalized penalty dimensions
            normalized: Normalized positive dimensions

        Returns:
            Five sentences joined by the configured delimiter
        """
        penalty_key = select_top_penalty(penalties)
        caution = category.caution_fallback
        if penalty_key is not None:
            caution = self.message_config.penalty_messages.get(penalty_key, caution)

        motivation_key = select_top_motivation(normalized)
        action = self.message_config.default_next_action
        if motivation_key is not None:
            action = self.message_config.motivation_messages.get(motivation_key, action)

        return self._assemble(category, vector, self.templates.subject, caution, action)

    def compose_for_type(
        self,
        category: CategoryProfile,
        vector: VectorProfile,
        reference_name: Optional[str] = None,
    ) -> str:
        """Compose a message for a type without any answers behind it.

        Uses the category's fallback caution and the default next action.
        When ``reference_name`` is given the message describes the type on
        behalf of that name instead of addressing the reader.
        """
        subject = self.templates.subject
        if reference_name:
            subject = self.templates.reference_subject.format(name=reference_name.strip())
        return self._assemble(
            category,
            vector,
            subject,
            category.caution_fallback,
            self.message_config.default_next_action,
        )

    def _assemble(
        self,
        category: CategoryProfile,
        vector: VectorProfile,
        subject: str,
        caution: str,
        action: str,
    ) -> str:
        t = self.templates
        sentences = [
            t.strength.format(
                subject=subject,
                category_label=category.label,
                vector_label=vector.label,
                strength=trim_ending_punctuation(category.strength),
                strength_suffix=trim_ending_punctuation(vector.strength_suffix),
            ),
            t.caution.format(caution=trim_ending_punctuation(caution)),
            t.utilization.format(utilization=trim_ending_punctuation(category.utilization)),
            t.utilization_detail.format(detail=trim_ending_punctuation(vector.utilization_addon)),
            t.next_action.format(action=trim_ending_punctuation(action)),
        ]
        terminator = self.message_config.terminator
        return self.message_config.delimiter.join(
            f"{trim_ending_punctuation(sentence)}{terminator}" for sentence in sentences
        )
