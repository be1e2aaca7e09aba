"""Tests for model invocation in text and streaming mode."""

from __future__ import annotations

import asyncio
import logging

import pytest
from langchain_core.language_models.fake import FakeListLLM
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, AIMessageChunk

from ragchat.configs.system import ChatDefaultsConfig
from ragchat.core.errors import ModelError
from ragchat.core.llm import LLMService, StreamChatResult, TextChatResult, chunk_text
from ragchat.core.options import ChatOptions, resolve_chat_options
from ragchat.core.prompt import DEFAULT_PROMPT


def _resolve(streaming: bool):
    return resolve_chat_options(
        ChatOptions(streaming=streaming), ChatDefaultsConfig(), DEFAULT_PROMPT
    )


class TestChunkText:
    def test_plain_string(self):
        assert chunk_text("abc") == "abc"

    def test_message_content(self):
        assert chunk_text(AIMessageChunk(content="hi")) == "hi"

    def test_content_blocks(self):
        msg = AIMessage(
            content=[
                {"type": "text", "text": "Hello "},
                {"type": "image_url", "image_url": {"url": "x"}},
                "world",
            ]
        )
        assert chunk_text(msg) == "Hello world"

    def test_unsupported_output(self):
        with pytest.raises(ModelError):
            chunk_text(42)


class TestTextMode:
    @pytest.mark.asyncio
    async def test_returns_text_and_completes(self):
        completed: list[str] = []
        service = LLMService(FakeListChatModel(responses=["Ankara."]))
        result = await service.call_llm(
            _resolve(False), "prompt", on_complete=completed.append
        )
        assert isinstance(result, TextChatResult)
        assert result.is_stream is False
        assert result.output == "Ankara."
        assert completed == ["Ankara."]

    @pytest.mark.asyncio
    async def test_completion_model(self):
        service = LLMService(FakeListLLM(responses=["plain text"]))
        result = await service.call_llm(_resolve(False), "prompt")
        assert result.output == "plain text"

    @pytest.mark.asyncio
    async def test_model_error_propagates(self):
        completed: list[str] = []
        service = LLMService(FakeListChatModel(responses=[]))
        with pytest.raises(Exception):
            await service.call_llm(_resolve(False), "prompt", on_complete=completed.append)
        assert completed == []


class TestStreamMode:
    @pytest.mark.asyncio
    async def test_chunks_in_order_then_complete_once(self):
        events: list[tuple[str, str]] = []

        def on_chunk(chunk: str) -> None:
            events.append(("chunk", chunk))

        def on_complete(output: str) -> None:
            events.append(("complete", output))

        service = LLMService(FakeListChatModel(responses=["Hi!"]))
        result = await service.call_llm(
            _resolve(True), "prompt", on_chunk=on_chunk, on_complete=on_complete
        )
        assert isinstance(result, StreamChatResult)
        assert result.is_stream is True
        assert events == []

        received = []
        async for chunk in result.output:
            received.append(chunk)
            assert ("complete", "Hi!") not in events

        assert received == ["H", "i", "!"]
        assert events == [
            ("chunk", "H"),
            ("chunk", "i"),
            ("chunk", "!"),
            ("complete", "Hi!"),
        ]

    @pytest.mark.asyncio
    async def test_slow_async_chunk_hook_does_not_hold_back_chunks(self):
        gate = asyncio.Event()
        seen: list[str] = []
        completed: list[str] = []

        async def on_chunk(chunk: str) -> None:
            await gate.wait()
            seen.append(chunk)

        service = LLMService(FakeListChatModel(responses=["Hi!"]))
        result = await service.call_llm(
            _resolve(True), "prompt", on_chunk=on_chunk, on_complete=completed.append
        )
        assert [c async for c in result.output] == ["H", "i", "!"]
        assert completed == ["Hi!"]
        assert seen == []

        gate.set()
        for _ in range(10):
            await asyncio.sleep(0)
        assert seen == ["H", "i", "!"]

    @pytest.mark.asyncio
    async def test_failing_async_chunk_hook_is_logged(self, caplog):
        async def on_chunk(chunk: str) -> None:
            raise RuntimeError("hook failed")

        service = LLMService(FakeListChatModel(responses=["ok"]))
        result = await service.call_llm(_resolve(True), "prompt", on_chunk=on_chunk)
        with caplog.at_level(logging.WARNING, logger="ragchat.core.llm"):
            assert [c async for c in result.output] == ["o", "k"]
            for _ in range(5):
                await asyncio.sleep(0)
        assert "on_chunk hook failed" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_chunk_hook_does_not_abort(self):
        completed: list[str] = []

        def on_chunk(chunk: str) -> None:
            raise RuntimeError("hook failed")

        service = LLMService(FakeListChatModel(responses=["ok"]))
        result = await service.call_llm(
            _resolve(True), "prompt", on_chunk=on_chunk, on_complete=completed.append
        )
        assert [c async for c in result.output] == ["o", "k"]
        assert completed == ["ok"]

    @pytest.mark.asyncio
    async def test_early_close_skips_completion(self):
        completed: list[str] = []
        service = LLMService(FakeListChatModel(responses=["abcdef"]))
        result = await service.call_llm(
            _resolve(True), "prompt", on_complete=completed.append
        )
        assert await result.output.__anext__() == "a"
        await result.output.aclose()
        assert completed == []

    @pytest.mark.asyncio
    async def test_source_error_surfaces_to_consumer(self):
        completed: list[str] = []
        model = FakeListChatModel(responses=["abcdef"], error_on_chunk_number=2)
        service = LLMService(model)
        result = await service.call_llm(
            _resolve(True), "prompt", on_complete=completed.append
        )
        received = []
        with pytest.raises(Exception):
            async for chunk in result.output:
                received.append(chunk)
        assert received == ["a", "b"]
        assert completed == []
