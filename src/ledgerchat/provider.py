import json
import logging

from openai import APIError, APIStatusError, AsyncOpenAI

from ledgerchat.config import Settings
from ledgerchat.errors import TransportError
from ledgerchat.events import (
    DoneEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    TextDeltaEvent,
    ToolCallStartEvent,
    ToolResultEvent,
)
from ledgerchat.options import ExchangeOptions
from ledgerchat.streaming import ToolCall, ToolCallAccumulator, ToolCallFragment
from ledgerchat.tools import Tool
from ledgerchat.transport import CancelToken, OnEvent

logger = logging.getLogger(__name__)

MAX_TURNS_MESSAGE = "Maximum turns reached. Please try again."


class OpenAIChatTransport:
    """Runs an exchange directly against an OpenAI-compatible endpoint.

    Useful when the finance API is not in the loop (local models,
    scripts, tests against a real provider).  Tool calls requested by
    the model are executed locally from ``tools`` and their results fed
    back, for at most ``max_turns`` model round-trips.

    Args:
        settings: API key and base URL; read from the environment when
            omitted.
        tools: Local tools the model may call.
        system_prompt: Optional system message prepended to the exchange.
        max_turns: Round-trip limit before the exchange errors out.
        client: Pre-built ``AsyncOpenAI`` client.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        tools: list[Tool] | None = None,
        system_prompt: str | None = None,
        max_turns: int = 10,
        client: AsyncOpenAI | None = None,
    ):
        settings = settings or Settings()
        if client is None:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=5,
                timeout=settings.request_timeout,
            )
        self.client = client
        self.tool_registry = {t.name: t for t in tools or []}
        self.system_prompt = system_prompt
        self.max_turns = max_turns

    def _request_kwargs(self, options: ExchangeOptions, messages: list[dict]) -> dict:
        kwargs = {"model": options.model, "messages": messages, "stream": True}
        if self.tool_registry:
            kwargs["tools"] = [t.openai_schema() for t in self.tool_registry.values()]
            kwargs["tool_choice"] = "auto"
        thinking = options.thinking_config()
        if thinking is not None and thinking.reasoning_effort:
            kwargs["reasoning_effort"] = thinking.reasoning_effort
        return kwargs

    async def start_exchange(
        self,
        conversation_id: str,
        content: str,
        options: ExchangeOptions,
        cancel_token: CancelToken,
        on_event: OnEvent,
    ) -> None:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": content})

        for _turn in range(self.max_turns):
            cancel_token.raise_if_cancelled()
            full_content, completed_calls = await self._stream_turn(
                options, messages, cancel_token, on_event,
            )

            if not completed_calls:
                on_event(DoneEvent())
                return

            messages.append({
                "role": "assistant",
                "content": full_content or None,
                "tool_calls": [tc.to_openai() for tc in completed_calls],
            })
            for tc in completed_calls:
                cancel_token.raise_if_cancelled()
                output = await self._execute_one(tc, on_event)
                messages.append({
                    "role": "tool",
                    "tool_call_id": tc.id,
                    "content": output if isinstance(output, str) else json.dumps(output, default=str),
                })

        logger.warning(f"Conversation {conversation_id} hit max_turns={self.max_turns}")
        on_event(ErrorEvent(message=MAX_TURNS_MESSAGE))

    async def _stream_turn(self, options, messages, cancel_token, on_event):
        acc = ToolCallAccumulator()
        full_content = ""
        try:
            stream = await self.client.chat.completions.create(
                **self._request_kwargs(options, messages),
            )
            async for chunk in stream:
                cancel_token.raise_if_cancelled()
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                reasoning = (
                    getattr(delta, "reasoning_content", None)
                    or getattr(delta, "reasoning", None)
                )
                if reasoning:
                    on_event(ReasoningDeltaEvent(text=reasoning))
                if delta.content:
                    full_content += delta.content
                    on_event(TextDeltaEvent(text=delta.content))
                for frag in delta.tool_calls or []:
                    function = frag.function
                    acc.feed(ToolCallFragment(
                        index=frag.index,
                        call_id=frag.id,
                        name=function.name if function else None,
                        arguments_delta=function.arguments if function else None,
                    ))
        except APIStatusError as e:
            raise TransportError(e.message, status_code=e.status_code) from e
        except APIError as e:
            raise TransportError(e.message) from e
        return full_content, acc.finalize()

    async def _execute_one(self, tc: ToolCall, on_event: OnEvent):
        try:
            args = tc.parsed_arguments()
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in arguments for {tc.name}: {e}")
            on_event(ToolCallStartEvent(call_id=tc.id, tool_name=tc.name, args=tc.arguments))
            output = f"Error: invalid arguments: {e}"
            on_event(ToolResultEvent(call_id=tc.id, result=output))
            return output

        on_event(ToolCallStartEvent(call_id=tc.id, tool_name=tc.name, args=args))

        tool_obj = self.tool_registry.get(tc.name)
        if tool_obj is None:
            logger.warning(f"Tool not found: {tc.name}")
            output = f"Error: tool '{tc.name}' not found"
        else:
            logger.info(f"Calling {tc.name} with {args}")
            try:
                output = await tool_obj(**args)
            except Exception as e:
                logger.error(f"Tool {tc.name} raised: {e}")
                output = f"Error calling {tc.name}: {e}"

        on_event(ToolResultEvent(call_id=tc.id, result=output))
        return output
