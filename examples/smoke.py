import asyncio
import json

import httpx

from chat_adapters import Message, ModelConfig, StreamCallbacks, collect, get_adapter
from chat_adapters.providers import OpenAIAdapter
from chat_adapters.registry import register_adapter


def fake_openai(request: httpx.Request) -> httpx.Response:
    frames = [{"choices": [{"delta": {"content": token}}]} for token in ('{"greeting": ', '"Hi there"}')]
    frames.append({"choices": [], "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}})
    body = "".join(f"data: {json.dumps(f)}\n\n" for f in frames) + "data: [DONE]\n\n"
    return httpx.Response(200, content=body.encode())


async def main() -> None:
    # Swap in an offline transport so the demo needs no credentials.
    register_adapter(OpenAIAdapter(transport=httpx.MockTransport(fake_openai)))

    adapter = get_adapter("openai")
    config = ModelConfig(
        provider="openai",
        model="gpt-4-turbo",
        stream_callbacks=StreamCallbacks(on_token=lambda t: print("token:", t)),
    )
    acc = await collect(adapter.stream([Message(role="user", content="Hello")], config))

    print("content:", acc.content)
    print("parsed:", acc.partial().parsed)
    print("usage:", acc.usage)

    try:
        get_adapter("together")
    except Exception as e:
        print("Expected error:", type(e).__name__, e)


if __name__ == "__main__":
    asyncio.run(main())
