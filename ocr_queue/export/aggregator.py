"""Concatenate the text of every Done item into one delimited document."""
from __future__ import annotations

from collections.abc import Iterable

from ocr_queue.batch.models import ItemView, QueueItem, QueueStatus

EXPORT_FILENAME = "extracted_text.txt"


def format_block(name: str, text: str) -> str:
    return f"--- Start of {name} ---\n\n{text}\n\n--- End of {name} ---\n"


def aggregate(items: Iterable[QueueItem | ItemView]) -> str:
    """Blocks in store order, separated by a blank line; "" when nothing is Done."""
    blocks = [
        format_block(item.name, item.result or "")
        for item in items
        if item.status is QueueStatus.DONE
    ]
    return "\n".join(blocks)
