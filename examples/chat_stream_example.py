"""Interactive example: streaming chat with a live transcript.

Demonstrates:
- Choosing a transport (the finance API over SSE, or a provider directly)
- Sending messages through ExchangeController
- Watching transcript snapshots as events arrive
- Defining local tools with @tool for the direct transport

Usage:
    uv run --env-file=.env examples/chat_stream_example.py --transport api --conversation <id> --provider openai --model gpt-4o-mini
    uv run --env-file=.env examples/chat_stream_example.py --transport openai --model gpt-4o-mini --trace
"""

import argparse
import asyncio
import logging
import uuid

from ledgerchat.config import Settings, configure_logging
from ledgerchat.controller import ExchangeController
from ledgerchat.options import ExchangeOptions
from ledgerchat.provider import OpenAIChatTransport
from ledgerchat.tools import tool
from ledgerchat.transcript import ToolCallStep, TranscriptState
from ledgerchat.transport import HttpChatTransport


def setup_tracing(service_name: str):
    from opentelemetry import trace
    from opentelemetry.sdk.resources import SERVICE_NAME, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        SimpleSpanProcessor, ConsoleSpanExporter,
    )
    from ledgerchat.instrumentation import instrument

    provider = TracerProvider(
        resource=Resource({SERVICE_NAME: service_name})
    )
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    instrument()


@tool
def monthly_budget(category: str):
    """Return the monthly budget for a spending category."""
    budgets = {"groceries": 400, "dining": 150, "transport": 120}
    return {"category": category, "budget": budgets.get(category.lower(), 0)}


def render(state: TranscriptState, printed: list[int]):
    """Print only the part of the cumulative text not shown yet."""
    new_text = state.cumulative_text[printed[0]:]
    if new_text:
        print(new_text, end="", flush=True)
        printed[0] = len(state.cumulative_text)
    if state.steps and isinstance(state.steps[-1], ToolCallStep):
        step = state.steps[-1]
        record = state.tool_calls[step.call_id]
        if record.has_result:
            print(f"\n[{step.tool_name} -> {record.result}]")


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--transport", choices=["api", "openai"], default="openai")
    parser.add_argument("--provider", default="openai")
    parser.add_argument("--model", required=True)
    parser.add_argument("--conversation", default=None)
    parser.add_argument("--trace", action="store_true")
    args = parser.parse_args()

    configure_logging(logging.WARNING)
    if args.trace:
        setup_tracing("ledgerchat-example")

    settings = Settings()
    if args.transport == "api":
        transport = HttpChatTransport(settings)
    else:
        transport = OpenAIChatTransport(
            settings,
            tools=[monthly_budget],
            system_prompt="You are a helpful personal-finance assistant.",
        )

    controller = ExchangeController(
        transport,
        conversation_id=args.conversation or str(uuid.uuid4()),
        on_complete=lambda cid: print(f"\n(conversation {cid} saved)"),
        settings=settings,
    )
    printed = [0]

    def on_state(state: TranscriptState):
        render(state, printed)

    controller.subscribe(on_state)
    options = ExchangeOptions(provider=args.provider, model=args.model)

    while True:
        try:
            user_input = input("\n> ")
        except (EOFError, KeyboardInterrupt):
            break
        if user_input.strip() in ("exit", "quit"):
            break
        printed[0] = 0
        controller.send(user_input, options)
        await controller.wait()
        if controller.state.error_message:
            print(f"\n[error] {controller.state.error_message}")


if __name__ == "__main__":
    asyncio.run(main())
