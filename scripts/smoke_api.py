#!/usr/bin/env python3
"""Smoke test for the conversation API against a running server."""

import sys

import httpx


BASE_URL = "http://127.0.0.1:8000"

DIALOGUE = [
    "What services are available?",
    "I want to file a travel expense claim",
    "Jane Doe",
    "2024-05-01",
    "120",
    "yes",
]


def check_health() -> bool:
    print("=" * 60)
    print("Testing GET /health")
    print("=" * 60)
    try:
        response = httpx.get(f"{BASE_URL}/health", timeout=5.0)
        response.raise_for_status()
        print(f"OK: {response.json()}")
        return True
    except httpx.HTTPError as e:
        print(f"Error: {e}")
        return False


def run_dialogue() -> bool:
    print("\n" + "=" * 60)
    print("Testing POST /conversation")
    print("=" * 60)

    conversation_id = None
    for text in DIALOGUE:
        payload = {"text": text}
        if conversation_id:
            payload["conversationId"] = conversation_id
        try:
            response = httpx.post(f"{BASE_URL}/conversation", json=payload, timeout=60.0)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            print(f"HTTP Error: {e.response.status_code}")
            print(f"Response: {e.response.text}")
            return False
        except httpx.HTTPError as e:
            print(f"Error: {e}")
            return False

        data = response.json()
        conversation_id = data["conversationId"]
        print(f"\n> {text}")
        print(f"< {data['text']}")
        print(f"  isComplete={data['isComplete']} data={data['data']}")

    detail = httpx.get(f"{BASE_URL}/conversation/{conversation_id}", timeout=10.0).json()
    print(f"\nFinal state: {detail['state']} ({len(detail['messages'])} messages)")
    return detail["state"] == "COMPLETION"


if __name__ == "__main__":
    if len(sys.argv) > 1:
        BASE_URL = sys.argv[1]
    ok = check_health() and run_dialogue()
    sys.exit(0 if ok else 1)
