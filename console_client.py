#!/usr/bin/env python3
"""
Lightweight console client for the LLM Sandbox streaming API.

Usage:
    python console_client.py kimi "Your prompt here"
    python console_client.py openai "Tell me about AI" 1000
"""

import json
import os
import sys
import uuid

import requests

# LLM Sandbox API base URL
API_BASE = os.getenv("SANDBOX_API_BASE", "http://localhost:8000")


def stream_chat(provider: str, prompt: str, max_tokens: int = 500, request_id: str | None = None) -> int:
    """Stream a completion from the sandbox and render it to the console.

    Returns a process exit code: 0 when the stream ended with [DONE], 1 on
    error (including a stream cut off before [DONE]), 130 when cancelled.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "text/event-stream",
        "X-Request-ID": request_id or f"req_{int(uuid.uuid4().int % 1000000000)}",
    }

    payload = {
        "prompt": prompt,
        "maxTokens": max_tokens,
        "template": "console",
    }

    print(f"\n{'='*80}")
    print(f"PROVIDER: {provider}")
    print(f"PROMPT: {prompt}")
    print(f"REQUEST ID: {headers['X-Request-ID']}")
    print(f"{'='*80}\n")

    usage = None
    in_reasoning = False

    try:
        with requests.post(
            f"{API_BASE}/api/{provider}/stream",
            headers=headers,
            json=payload,
            stream=True,
            timeout=(10, None),
        ) as response:
            if not response.ok:
                try:
                    error = response.json().get("error")
                except ValueError:
                    error = response.text
                print(f"❌ ERROR ({response.status_code}): {error}", file=sys.stderr)
                return 1

            for line in response.iter_lines():
                if not line:
                    continue

                decoded_line = line.decode("utf-8")
                if not decoded_line.startswith("data: "):
                    continue

                event_data = decoded_line[6:].strip()  # Remove "data: " prefix
                if event_data == "[DONE]":
                    if usage:
                        print(f"\n\n{'='*80}")
                        print(
                            f"Tokens: {usage['total_tokens']} "
                            f"(prompt: {usage['prompt_tokens']}, "
                            f"completion: {usage['completion_tokens']})"
                        )
                        print(f"{'='*80}\n")
                    else:
                        print()
                    return 0

                try:
                    event_json = json.loads(event_data)
                except json.JSONDecodeError as e:
                    print(f"\n❌ JSON Parse Error: {e}", file=sys.stderr)
                    continue

                # Reasoning is shown dimmed, ahead of the answer
                if event_json.get("reasoning"):
                    if not in_reasoning:
                        print("\033[2m", end="")
                        in_reasoning = True
                    print(event_json["reasoning"], end="", flush=True)

                if event_json.get("content"):
                    if in_reasoning:
                        print("\033[0m\n")
                        in_reasoning = False
                    print(event_json["content"], end="", flush=True)

                if event_json.get("usage"):
                    usage = event_json["usage"]

    except KeyboardInterrupt:
        print("\033[0m\n\n⏹  Cancelled", file=sys.stderr)
        return 130

    except requests.exceptions.RequestException as e:
        print(f"\033[0m\n❌ Request failed: {e}", file=sys.stderr)
        return 1

    # The server closes the stream without [DONE] when the upstream fails
    print("\033[0m\n❌ Stream ended without [DONE]; the completion failed", file=sys.stderr)
    return 1


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python console_client.py <kimi|openai> <prompt> [max_tokens] [request_id]")
        print("\nExamples:")
        print('  python console_client.py kimi "Hello, world!"')
        print('  python console_client.py openai "Tell me about AI" 300')
        print('  python console_client.py kimi "Hello" 500 "my-trace-123"')
        sys.exit(1)

    provider = sys.argv[1]
    prompt = sys.argv[2]
    max_tokens = int(sys.argv[3]) if len(sys.argv) > 3 else 500
    request_id = sys.argv[4] if len(sys.argv) > 4 else None

    sys.exit(stream_chat(provider, prompt, max_tokens, request_id))
