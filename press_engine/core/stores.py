"""Persistence contracts consumed by the orchestration layer.

The Supabase-backed modules in `press_engine.db` satisfy these protocols
structurally (a module with the right functions is a valid store), and tests
pass in-memory fakes. Store calls are blocking; async callers run them via
`asyncio.to_thread`.
"""

from datetime import datetime
from typing import Any, Protocol


class DocumentStore(Protocol):
    def list_documents(self, user_id: str, limit: int = 200) -> list[dict[str, Any]]: ...

    def create_documents(self, user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]: ...

    def search_documents_by_keyword(
        self, user_id: str, query: str, limit: int = 10
    ) -> list[dict[str, Any]]: ...

    def match_documents(
        self,
        user_id: str,
        query_embedding: list[float],
        limit: int = 8,
        metric: str = "cosine",
    ) -> list[dict[str, Any]]: ...


class UsageLedgerStore(Protocol):
    def record_usage_event(self, user_id: str, row: dict[str, Any]) -> None: ...

    def get_user_profile(self, user_id: str) -> dict[str, Any]: ...

    def increment_user_tokens(self, user_id: str, delta: int) -> None: ...

    def list_usage_events(self, user_id: str, since: datetime) -> list[dict[str, Any]]: ...
