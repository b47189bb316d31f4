"""
Pytest configuration for the Weekend Activity Finder backend tests.

Sets up the test environment and global fixtures:
- fake_db: in-memory stand-in for the Supabase client (search_cache table,
  touch_search_cache and search_cache_stats RPCs, unique cache_key)
- activity_request / sample_payload: the Kraków request and a valid answer
- scripted model / fake search client factories for driving the agent
"""
import json
import os
import threading
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-api-key")
os.environ.setdefault("SERPER_API_KEY", "test-serper-api-key")

from postgrest.exceptions import APIError  # noqa: E402

from weekend_backend.agents.activity.agent import ActivityAgent  # noqa: E402
from weekend_backend.agents.activity.types import (  # noqa: E402
    EmptyReply,
    TextReply,
    ToolCall,
    ToolCallReply,
    Usage,
)
from weekend_backend.schemas.search import Attendee, RecommendationRequest  # noqa: E402


# =============================================================================
# IN-MEMORY SUPABASE
# =============================================================================

def _coerce(value: Any) -> Any:
    """Compare ISO timestamps as datetimes, everything else as-is."""
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return value
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return value


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query builder mimicking postgrest's sync request builder."""

    def __init__(self, db: "InMemorySupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload: Optional[Dict[str, Any]] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: Optional[tuple] = None
        self.max_rows: Optional[int] = None
        self.offset = 0

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, row: Dict[str, Any]) -> "FakeQuery":
        self.op = "insert"
        self.payload = dict(row)
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def lt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: _coerce(row.get(column)) < _coerce(value))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: _coerce(row.get(column)) <= _coerce(value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.max_rows = size
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.offset = start
        self.max_rows = end - start + 1
        return self

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return dict(row)
        keys = [column.strip() for column in self.columns.split(",")]
        return {key: row.get(key) for key in keys}

    def execute(self) -> FakeResponse:
        self.db.check_available()
        with self.db.lock:
            rows = self.db.tables.setdefault(self.table, [])

            if self.op == "insert":
                return FakeResponse([self.db.insert_row(self.table, self.payload or {})])

            matched = [row for row in rows if all(f(row) for f in self.filters)]

            if self.op == "delete":
                self.db.tables[self.table] = [row for row in rows if row not in matched]
                return FakeResponse([dict(row) for row in matched])

            if self.order_by:
                column, desc = self.order_by
                matched.sort(key=lambda row: (_coerce(row.get(column)), row["id"]), reverse=desc)
            total = len(matched)
            matched = matched[self.offset:]
            if self.max_rows is not None:
                matched = matched[:self.max_rows]
            return FakeResponse([self._project(row) for row in matched], count=total)


class FakeRpc:
    def __init__(self, db: "InMemorySupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.check_available()
        self.db.rpc_calls.append((self.name, dict(self.params)))
        handler = getattr(self.db, f"_rpc_{self.name}")
        with self.db.lock:
            return FakeResponse(handler(**self.params))


class InMemorySupabase:
    """Minimal in-memory stand-in for supabase.Client used by the services."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"search_cache": []}
        self.lock = threading.Lock()
        self.next_id = 1
        self.rpc_calls: List[tuple] = []
        self.outage: Optional[Exception] = None

    # -- helpers used by tests ------------------------------------------------

    def fail_with(self, error: Exception) -> None:
        """Make every following call raise error (simulated outage)."""
        self.outage = error

    def check_available(self) -> None:
        if self.outage is not None:
            raise self.outage

    def rows(self, table: str = "search_cache") -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def update_row(self, row_id: int, **values: Any) -> None:
        for row in self.rows():
            if row["id"] == row_id:
                row.update(values)

    # -- supabase.Client surface ---------------------------------------------

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    # -- storage semantics ---------------------------------------------------

    def insert_row(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self.tables.setdefault(table, [])
        if any(existing["cache_key"] == row.get("cache_key") for existing in rows):
            raise APIError({
                "message": 'duplicate key value violates unique constraint "search_cache_cache_key_unique"',
                "code": "23505",
                "details": None,
                "hint": None,
            })
        now = datetime.now(timezone.utc).isoformat()
        stored = {"created_at": now, "updated_at": now, **row, "id": self.next_id}
        self.next_id += 1
        rows.append(stored)
        return dict(stored)

    def _rpc_touch_search_cache(self, p_cache_key: str, p_user_id: int) -> List[Dict[str, Any]]:
        now = datetime.now(timezone.utc)
        for row in self.rows():
            if (
                row["cache_key"] == p_cache_key
                and row["user_id"] == p_user_id
                and _coerce(row["expires_at"]) > now
            ):
                row["access_count"] += 1
                row["updated_at"] = now.isoformat()
                return [dict(row)]
        return []

    def _rpc_search_cache_stats(self) -> List[Dict[str, Any]]:
        rows = self.rows()
        total_cost = 0.0
        for row in rows:
            blob = row.get("agent_metadata") or {}
            if blob.get("schema_version") == 1:
                total_cost += blob.get("payload", {}).get("estimated_cost") or 0
        return [{
            "total_searches": len(rows),
            "total_users": len({row["user_id"] for row in rows}),
            "total_cost": total_cost,
        }]


@pytest.fixture
def fake_db() -> InMemorySupabase:
    """Fresh in-memory Supabase stand-in."""
    return InMemorySupabase()


# =============================================================================
# REQUESTS AND PAYLOADS
# =============================================================================

@pytest.fixture
def activity_request() -> RecommendationRequest:
    """Two adults and a 5-year-old in Kraków, indoor preference."""
    return RecommendationRequest(
        city="Kraków",
        date_range_start=date(2025, 11, 1),
        date_range_end=date(2025, 11, 2),
        attendees=[
            Attendee(age=35, role="adult"),
            Attendee(age=33, role="adult"),
            Attendee(age=5, role="child"),
        ],
        preferences="indoor",
    )


def _activity(name: str, category: str) -> Dict[str, Any]:
    return {
        "name": name,
        "description": f"{name} is a family favourite in Kraków.",
        "category": category,
        "age_range": "3-10 years",
        "location": {"address": "ul. Przykładowa 1", "city": "Kraków"},
        "pricing": {"type": "paid", "amount": "30 PLN per child"},
        "why_recommended": "Indoor and suitable for a 5-year-old.",
    }


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    """A valid final answer with three recommendations."""
    return {
        "search_summary": "Indoor activities for a family with a 5-year-old in Kraków.",
        "recommendations": [
            _activity("Fabryka Zabawy", "indoor_play"),
            _activity("Muzeum Inżynierii Miejskiej", "museum"),
            _activity("Ogród Doświadczeń", "outdoor"),
        ],
        "additional_notes": "Book weekend tickets in advance.",
        "search_date": "2025-10-30T12:00:00+00:00",
    }


# =============================================================================
# AGENT DOUBLES
# =============================================================================

class ScriptedModel:
    """Returns scripted replies in order; the last one repeats."""

    model = "gemini-2.5-flash"

    def __init__(self, replies: List[Any]):
        self.replies = list(replies)
        self.calls: List[list] = []

    async def generate(self, system_instruction, transcript, tools):
        self.calls.append(list(transcript))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeSearchClient:
    """Records queries; returns canned text or raises a scripted error."""

    def __init__(self, text: str = "Search Query: q\n\nSearch Results:\n\n1. Result\n", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.queries: List[tuple] = []

    def search(self, query: str, num_results: int = 10) -> str:
        self.queries.append((query, num_results))
        if self.error is not None:
            raise self.error
        return self.text


def make_tool_call_reply(*queries: str, input_tokens: int = 100, output_tokens: int = 20) -> ToolCallReply:
    return ToolCallReply(
        calls=tuple(
            ToolCall(name="web_search", args={"query": query}, id=f"call-{i}")
            for i, query in enumerate(queries)
        ),
        usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens),
    )


def make_text_reply(payload: Any, fenced: bool = True, input_tokens: int = 200, output_tokens: int = 300) -> TextReply:
    body = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    text = f"```json\n{body}\n```" if fenced else body
    return TextReply(text=text, usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens))


@pytest.fixture
def tool_call_reply():
    """Factory: tool_call_reply('query', ...) -> ToolCallReply."""
    return make_tool_call_reply


@pytest.fixture
def text_reply():
    """Factory: text_reply(payload, fenced=True) -> TextReply."""
    return make_text_reply


@pytest.fixture
def empty_reply():
    return EmptyReply(reason="SAFETY")


@pytest.fixture
def make_agent():
    """Factory building an ActivityAgent around scripted doubles."""

    def _make(replies: List[Any], search_client: Optional[FakeSearchClient] = None, max_iterations: int = 10):
        model = ScriptedModel(replies)
        search = search_client or FakeSearchClient()
        agent = ActivityAgent(model=model, search_client=search, max_iterations=max_iterations)
        return agent, model, search

    return _make


@pytest.fixture
def search_client_factory():
    """Factory: search_client_factory(text=..., error=...) -> FakeSearchClient."""
    return FakeSearchClient
