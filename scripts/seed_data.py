"""Seed the API with sample notes and bookmarks.

Goes through the resilient client, so the requests are queued, retried
and logged like the front end's.  Requires the API and PostgreSQL to be
running.

Usage:
    python scripts/seed_data.py [--base-url http://localhost:8000] [--token TOKEN]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Make `client.*` importable when run as a plain script.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from client.errors import ApiError  # noqa: E402
from client.records import NotekeeperApi  # noqa: E402
from client.resilient import ResilientClient  # noqa: E402

DEFAULT_BASE_URL = "http://localhost:8000"


# Each entry: (title, content, tags)
NOTES: list[tuple[str, str, list[str]]] = [
    (
        "Project Ideas",
        "Build a code review assistant that connects to GitHub and runs "
        "static analysis on every pull request.",
        ["ideas", "tooling"],
    ),
    (
        "Meeting Notes",
        "Discussed migrating the monolith to microservices. Key decision: "
        "use event-driven architecture with Redis Streams between services.",
        ["meetings", "architecture"],
    ),
    (
        "Reading List",
        "Attention Is All You Need; ReAct: Synergizing Reasoning and Acting; "
        "Designing Data-Intensive Applications.",
        ["reading", "papers"],
    ),
    (
        "PostgreSQL full-text search",
        "to_tsvector + to_tsquery with a GIN index keeps search fast. "
        "Use the array containment operator for tag filters.",
        ["postgres", "architecture"],
    ),
]

# Each entry: (url, tags); titles are fetched by the server
BOOKMARKS: list[tuple[str, list[str]]] = [
    ("https://www.postgresql.org/docs/current/textsearch.html", ["postgres", "docs"]),
    ("https://fastapi.tiangolo.com/", ["python", "docs"]),
    ("https://www.python-httpx.org/", ["python", "http"]),
    ("https://docs.streamlit.io/", ["python", "ui"]),
]


async def seed(api: NotekeeperApi) -> int:
    """Create every sample record; return the number of failures."""
    failures = 0

    health = await api.health()
    print(f"  Server: {health.get('status')} (database {health.get('database')})\n")

    for i, (title, content, tags) in enumerate(NOTES, 1):
        print(f"  [note {i}/{len(NOTES)}] {title}")
        try:
            note = await api.create_note(title, content, tags)
            print(f"         id={note.id} tags={note.tags}")
        except ApiError as e:
            failures += 1
            print(f"         ERROR: {e.user_message} ({e.kind.value})")

    for i, (url, tags) in enumerate(BOOKMARKS, 1):
        print(f"  [bookmark {i}/{len(BOOKMARKS)}] {url}")
        start = time.time()
        try:
            bookmark = await api.create_bookmark(url, tags=tags)
            print(f"         title={bookmark.title!r} ({time.time() - start:.1f}s)")
        except ApiError as e:
            failures += 1
            print(f"         ERROR: {e.user_message} ({e.kind.value})")

    return failures


async def _main(base_url: str, token: str) -> int:
    async with ResilientClient(base_url, token=token or None) as client:
        return await seed(NotekeeperApi(client))


def main() -> None:
    """Seed all sample records sequentially."""
    parser = argparse.ArgumentParser(description="Seed sample notes and bookmarks")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"API base URL (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument("--token", default="", help="Bearer token, if the API requires one")
    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    print(f"\n  Seeding data via {base_url}")
    print("  " + "=" * 58)

    try:
        failures = asyncio.run(_main(base_url, args.token))
    except ApiError as e:
        print(f"  FAIL: {e.user_message}")
        sys.exit(1)

    print("  " + "=" * 58)
    total = len(NOTES) + len(BOOKMARKS)
    print(f"  Done! {total - failures}/{total} records created.")
    print("    - Streamlit UI:  http://localhost:8501")
    print("    - API Docs:      http://localhost:8000/docs")
    print()
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
