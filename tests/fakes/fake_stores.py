"""In-memory document and usage ledger stores."""

import json
from datetime import datetime, timezone
from typing import Any


class FakeDocumentStore:
    """Implements the DocumentStore protocol over a list of rows."""

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self.rows: list[dict[str, Any]] = list(rows or [])
        self.match_rows: list[dict[str, Any]] = []
        self.list_error: Exception | None = None
        self.keyword_error: Exception | None = None
        self.match_error: Exception | None = None
        self.calls: list[str] = []
        self._next_id = len(self.rows) + 1

    def add(self, content: str, embedding: Any = None, user_id: str = "u1", **extra: Any) -> dict[str, Any]:
        row = {
            "id": str(self._next_id),
            "user_id": user_id,
            "source": extra.pop("source", "past_release"),
            "title": extra.pop("title", None),
            "content": content,
            "embedding": json.dumps(embedding) if isinstance(embedding, list) else embedding,
            **extra,
        }
        self._next_id += 1
        self.rows.append(row)
        return row

    def list_documents(self, user_id: str, limit: int = 200) -> list[dict[str, Any]]:
        self.calls.append("list_documents")
        if self.list_error:
            raise self.list_error
        return [r for r in self.rows if r.get("user_id") == user_id][:limit]

    def create_documents(self, user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.calls.append("create_documents")
        inserted = []
        for row in rows:
            stored = {**row, "id": str(self._next_id), "user_id": user_id}
            self._next_id += 1
            self.rows.append(stored)
            inserted.append(stored)
        return inserted

    def search_documents_by_keyword(self, user_id: str, query: str, limit: int = 10) -> list[dict[str, Any]]:
        self.calls.append("search_documents_by_keyword")
        if self.keyword_error:
            raise self.keyword_error
        terms = query.lower().split()
        hits = [
            r for r in self.rows
            if r.get("user_id") == user_id and any(t in r["content"].lower() for t in terms)
        ]
        return hits[:limit]

    def match_documents(
        self, user_id: str, query_embedding: list[float], limit: int = 8, metric: str = "cosine"
    ) -> list[dict[str, Any]]:
        self.calls.append("match_documents")
        if self.match_error:
            raise self.match_error
        return self.match_rows[:limit]


class FakeUsageStore:
    """Implements the UsageLedgerStore protocol in memory."""

    def __init__(self, used: int = 0):
        self.events: list[dict[str, Any]] = []
        self.tokens: dict[str, int] = {}
        self.default_used = used
        self.profile_error: Exception | None = None
        self.record_error: Exception | None = None
        self.increment_error: Exception | None = None

    def record_usage_event(self, user_id: str, row: dict[str, Any]) -> None:
        if self.record_error:
            raise self.record_error
        self.events.append({**row, "user_id": user_id})

    def get_user_profile(self, user_id: str) -> dict[str, Any]:
        if self.profile_error:
            raise self.profile_error
        used = self.tokens.setdefault(user_id, self.default_used)
        return {"user_id": user_id, "monthly_tokens_used": used}

    def increment_user_tokens(self, user_id: str, delta: int) -> None:
        if self.increment_error:
            raise self.increment_error
        self.tokens[user_id] = self.tokens.get(user_id, self.default_used) + delta

    def list_usage_events(self, user_id: str, since: datetime) -> list[dict[str, Any]]:
        rows = []
        for event in self.events:
            created = datetime.fromisoformat(event["created_at"])
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            if event["user_id"] == user_id and created >= since:
                rows.append(event)
        return rows
