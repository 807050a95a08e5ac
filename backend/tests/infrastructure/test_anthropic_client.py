"""Anthropic Completion Client — tests for request shaping and response parsing.

Tests cover:
    - SDK client built without SDK-level retries
    - Standard vs beta endpoint routing, optional system/tools
    - One client per credential index
    - response_text joins text blocks only
    - web_sources dedupes by URI and skips error payloads
"""

from unittest.mock import AsyncMock

import pytest

from persona_ai.core.credential_pool import Credential
from persona_ai.infrastructure.anthropic_client import (
    WEB_SEARCH_BETA,
    AnthropicCompletionClient,
    CompletionClientRegistry,
    response_text,
    web_search_tool,
    web_sources,
)

from tests.services.mock_completion import _Block, _Message, text_response


def _client():
    return AnthropicCompletionClient(api_key="sk-ant-test", model="test-model", max_tokens=256)


def test_sdk_retries_disabled():
    assert _client().client.max_retries == 0


@pytest.mark.asyncio
async def test_create_message_standard_endpoint():
    client = _client()
    client.client.messages.create = AsyncMock(return_value=text_response("hi"))

    response = await client.create_message(messages=[{"role": "user", "content": "x"}])

    assert response_text(response) == "hi"
    kwargs = client.client.messages.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["max_tokens"] == 256
    assert "system" not in kwargs
    assert "tools" not in kwargs


@pytest.mark.asyncio
async def test_create_message_beta_endpoint_with_tools():
    client = _client()
    client.client.beta.messages.create = AsyncMock(return_value=text_response("hi"))

    await client.create_message(
        messages=[{"role": "user", "content": "x"}],
        system="be brief",
        tools=[web_search_tool(3)],
        betas=[WEB_SEARCH_BETA],
    )

    kwargs = client.client.beta.messages.create.call_args.kwargs
    assert kwargs["betas"] == [WEB_SEARCH_BETA]
    assert kwargs["system"] == "be brief"
    assert kwargs["tools"][0]["max_uses"] == 3


def test_registry_caches_per_credential():
    built = []

    def factory(credential):
        built.append(credential.index)
        return object()

    registry = CompletionClientRegistry(factory)
    a = Credential(0, "key-a")
    b = Credential(1, "key-b")
    assert registry.for_credential(a) is registry.for_credential(a)
    registry.for_credential(b)
    assert built == [0, 1]


def test_response_text_ignores_non_text_blocks():
    message = _Message([
        _Block(type="server_tool_use", name="web_search", input={}),
        _Block(type="text", text="Hello, "),
        _Block(type="text", text="world"),
    ])
    assert response_text(message) == "Hello, world"


def test_response_text_empty_content():
    assert response_text(_Message([])) == ""


def test_web_sources_dedupes_and_defaults_title():
    message = _Message([
        _Block(type="web_search_tool_result", content=[
            {"url": "https://a", "title": "A"},
            {"url": "https://a", "title": "A again"},
            {"url": "https://b"},
            {"title": "no url"},
        ]),
        _Block(type="web_search_tool_result", content={"error_code": "max_uses_exceeded"}),
    ])
    assert web_sources(message) == [
        {"title": "A", "uri": "https://a"},
        {"title": "Unknown Source", "uri": "https://b"},
    ]


def test_web_sources_reads_object_results():
    result = _Block(type="web_search_result", url="https://c", title="C")
    message = _Message([_Block(type="web_search_tool_result", content=[result])])
    assert web_sources(message) == [{"title": "C", "uri": "https://c"}]
