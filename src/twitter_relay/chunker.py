"""Pack thread entities into Telegram-sized messages.

Budgets count characters of plain text. Telegram measures limits after
parsing markup, so escaping does not eat into them. The author title on the
first chunk is plain text too and is taken off the first budget.
"""

import logging
from dataclasses import dataclass

from .models import OutputChunk, ThreadEntity

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"

TEXT_BUDGET = 4096
CAPTION_BUDGET = 1024
FIRST_TEXT_BUDGET = 3072
FIRST_CAPTION_BUDGET = 768


@dataclass(frozen=True)
class ChunkBudgets:
    text: int = TEXT_BUDGET
    caption: int = CAPTION_BUDGET
    first_text: int = FIRST_TEXT_BUDGET
    first_caption: int = FIRST_CAPTION_BUDGET

    def first(self, trigger_kind: str | None) -> int:
        """Budget of the first chunk given the kind of message it edits.

        trigger_kind is "text", "caption", or None when nothing is edited.
        """
        if trigger_kind == "caption":
            return self.first_caption
        if trigger_kind == "text":
            return self.first_text
        return self.text


def chunk_entities(
    entities: list[ThreadEntity],
    first_budget: int,
    rest_budget: int = TEXT_BUDGET,
    group_budget: int = TEXT_BUDGET,
    title: str | None = None,
) -> list[OutputChunk]:
    """Greedily fold entities into chunks, in order, without backtracking.

    A chunk closes when the next entity brings media, when the chunk itself
    carries media, or when appending would exceed the chunk's budget. An entity
    longer than any budget still gets a chunk of its own; entities are never
    split. Chunks whose opening entity has several media items are sent as a
    media group plus a separate text message, so they use group_budget.

    The first chunk is rendered below title, which comes out of its budget.
    """
    if not entities:
        return []

    chunks: list[OutputChunk] = []
    folded = [entities[0]]
    text = entities[0].text
    budget = first_budget if len(entities[0].media) <= 1 else group_budget
    if title:
        budget -= len(title) + len(SEPARATOR)

    for entity in entities[1:]:
        length = len(text) + len(SEPARATOR) + len(entity.text)
        if entity.media or folded[0].media or length > budget:
            chunks.append(_close(folded, text))
            folded = [entity]
            text = entity.text
            budget = group_budget if len(entity.media) > 1 else rest_budget
        else:
            folded.append(entity)
            text = text + SEPARATOR + entity.text

    chunks.append(_close(folded, text))
    logger.debug("Packed %d entities into %d chunks", len(entities), len(chunks))
    return chunks


def _close(folded: list[ThreadEntity], text: str) -> OutputChunk:
    return OutputChunk(text=text, media=folded[0].media, entities=tuple(folded))
