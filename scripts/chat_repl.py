#!/usr/bin/env python3
"""
Terminal chat against one Contextly session.
Streams answers live; Ctrl+C while an answer is streaming drops that answer.

    CONTEXTLY_TOKEN=... python scripts/chat_repl.py <session_id>
"""
import argparse
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from contextly.models.message import ROLE_USER
from contextly.services.chat_client import ChatClient
from contextly.services.conversation import Conversation, TurnFailed
from contextly.services.renderer import PlainTextRenderer, render_content


def _print_transcript(conv: Conversation, renderer: PlainTextRenderer):
    for m in conv.messages:
        who = "you" if m.role == ROLE_USER else "assistant"
        print(f"[{who}] {render_content(m.content, renderer)}")


def main():
    parser = argparse.ArgumentParser(description="Chat with a Contextly session")
    parser.add_argument("session_id")
    parser.add_argument("--upstream", default=None, help="chat backend base URL")
    parser.add_argument("--token", default=os.getenv("CONTEXTLY_TOKEN"))
    args = parser.parse_args()

    if not args.token:
        print("❌ No authentication token (use --token or CONTEXTLY_TOKEN)")
        sys.exit(2)

    renderer = PlainTextRenderer()
    conv = Conversation(args.session_id, ChatClient(base_url=args.upstream), args.token)
    conv.load()
    _print_transcript(conv, renderer)

    def on_update(segments):
        # redraw the partial answer in place
        sys.stdout.write("\r[assistant] " + render_content(segments, renderer))
        sys.stdout.flush()

    while True:
        try:
            text = input("\n> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        try:
            reply = conv.send(text, on_update=on_update)
        except KeyboardInterrupt:
            print("\n⚠️  answer dropped")
            continue
        except TurnFailed as e:
            print(f"\n❌ Error: {e}")
            continue
        if reply is not None:
            sys.stdout.write("\r[assistant] " + render_content(reply.content, renderer) + "\n")


if __name__ == "__main__":
    main()
