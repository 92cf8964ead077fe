#!/usr/bin/env python3
"""
Demo script for the lecture assistant.

Shows how questions map to cache keys, then sends a few questions to a
running server (``lecture-assistant``) so the MISS -> HIT flow is visible.
"""

import os

import httpx

from lecture_assistant.utils import context_fingerprint, normalize_question

BASE_URL = os.getenv("DEMO_BASE_URL", "http://localhost:8000")

LECTURE = (
    "Biology 101, lecture 3: Cells.\n"
    "The cell is the basic structural and functional unit of life. "
    "Prokaryotic cells lack a nucleus; eukaryotic cells have one."
)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_cache_keys() -> None:
    """Show which questions share an exact-match key."""
    print_section("Exact-match cache keys")

    questions = [
        "What is a cell?",
        "  what IS a cell  ",
        "What is a cell?!",
        "ما هي الخلية؟",
        "What is a nucleus?",
    ]
    for question in questions:
        print(f"  {question!r:28} -> {normalize_question(question)!r}")

    print(f"\n  Partition key of this lecture: {context_fingerprint(LECTURE)[:16]}...")


def demo_requests(client: httpx.Client) -> None:
    """Ask the same question twice, then a paraphrase."""
    print_section(f"Requests against {BASE_URL}")

    for question in ["What is a cell?", "what is a cell", "Which cells lack a nucleus?"]:
        response = client.post(
            "/askAI",
            json={
                "conversationHistory": [{"role": "user", "content": question}],
                "context": LECTURE,
            },
        )
        data = response.json()
        if response.status_code != 200:
            print(f"\n  {question}\n  ✗ {response.status_code}: {data.get('error')}")
            continue
        status = response.headers.get("X-Cache-Status", "?")
        print(f"\n  {question}")
        print(f"  {status} in {data['responseTime']} (hits: {data.get('hitCount', '-')})")
        print(f"  {data['reply'][:100]}")


def main() -> None:
    """Run all demos."""
    demo_cache_keys()

    with httpx.Client(base_url=BASE_URL, timeout=60) as client:
        try:
            health = client.get("/health").json()
        except httpx.HTTPError as e:
            print(f"\n  Server not reachable ({e}); start it with `lecture-assistant`.")
            return
        print(f"\n  Health: {health}")
        demo_requests(client)


if __name__ == "__main__":
    main()
