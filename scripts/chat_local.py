#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP).

Usage:
  python3 scripts/chat_local.py

What it does:
- Keeps one conversation for the session (the first message creates it)
- Sends your typed messages through the same HandleMessageUseCase as the API
- Prints the reply, the collected slot data and the conversation state
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv()

from formflow.application.use_cases.state_machine import ConversationStateMachine  # noqa: E402
from formflow.wiring.dependencies import (  # noqa: E402
    get_conversation_store,
    get_handle_message_use_case,
)


def _print_header() -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print("Type your message and press Enter.")
    print("Commands: /new (new conversation), /history, /state, /quit, /help")
    print("-" * 60)


async def main() -> None:
    use_case = get_handle_message_use_case()
    store = get_conversation_store()
    conversation_id: str | None = None
    _print_header()

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_text:
            continue

        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new     -> start a new conversation")
            print("  /history -> show last 10 messages")
            print("  /state   -> show state, current field and data")
            print("  /quit    -> exit")
            continue
        if cmd == "/new":
            conversation_id = None
            print("Next message starts a new conversation.")
            continue
        if cmd in ("/history", "/state"):
            conversation = await store.get(conversation_id) if conversation_id else None
            if conversation is None:
                print("(no conversation yet)")
                continue
            if cmd == "/history":
                print("\n--- History (last 10) ---")
                for message in conversation.recent_messages(10):
                    print(f"{message.role}: {message.content}")
            else:
                state = ConversationStateMachine.get_current_state(conversation)
                print(f"state: {state.value}")
                print(f"blueprint: {conversation.blueprint_id}")
                print(f"current field: {conversation.current_field_id}")
                print(f"data: {conversation.data}")
            continue

        try:
            reply = await use_case.execute(conversation_id, user_text)
        except Exception as e:
            print(f"ERROR: {type(e).__name__}: {e}")
            continue

        if conversation_id is None:
            conversation = await store.get(reply.conversation_id)
            if conversation and conversation.messages:
                print(f"(welcome) {conversation.messages[0].content}")
        conversation_id = reply.conversation_id

        print("\n--- Reply ---")
        print(reply.text.strip() or "(empty reply)")
        print(f"\ndata: {reply.data}")
        if reply.is_complete:
            print("(conversation complete; /new to start another)")
        print("-" * 60)


if __name__ == "__main__":
    asyncio.run(main())
