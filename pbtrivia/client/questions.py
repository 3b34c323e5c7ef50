"""Read-only access to the shared question bank."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

from .games import require_auth
from .models import ListResult, QuestionRecord, narrow_list
from .pocketbase import PocketBaseClient

logger = logging.getLogger(__name__)

QUESTIONS_COLLECTION = "questions"
EXPORT_FIELDS = ("category", "subcategory", "difficulty", "question", "a", "b", "c", "d", "level", "metadata")


def _quote_filter_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_filter(category: str | None = None, difficulty: str | None = None) -> str | None:
    terms = []
    if category:
        terms.append(f"category = {_quote_filter_value(category)}")
    if difficulty:
        terms.append(f"difficulty = {_quote_filter_value(difficulty)}")
    return " && ".join(terms) or None


def list_questions(
    client: PocketBaseClient,
    page: int = 1,
    per_page: int = 30,
    category: str | None = None,
    difficulty: str | None = None,
) -> ListResult[QuestionRecord]:
    require_auth(client)
    payload = client.collection(QUESTIONS_COLLECTION).get_list(
        page=page,
        per_page=per_page,
        filter=build_filter(category=category, difficulty=difficulty),
    )
    return narrow_list(QuestionRecord, payload)


def iter_questions(
    client: PocketBaseClient,
    batch_size: int = 500,
    category: str | None = None,
    difficulty: str | None = None,
) -> Iterator[QuestionRecord]:
    page = 1
    while True:
        result = list_questions(client, page=page, per_page=batch_size, category=category, difficulty=difficulty)
        yield from result.items
        if not result.items or page >= result.total_pages:
            return
        page += 1


def export_questions(client: PocketBaseClient, path: str | Path, batch_size: int = 500) -> int:
    """Write the whole question bank to ``path`` as JSON, without system fields."""
    records = [
        question.model_dump(include=set(EXPORT_FIELDS)) for question in iter_questions(client, batch_size=batch_size)
    ]
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Exported %d questions to %s", len(records), target)
    return len(records)
