"""ChatClient tests: in-process ASGI server for the happy path, MockTransport for failures."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from support_agent.application.ports.telemetry_port import NullTelemetry
from support_agent.config.composition import Container
from support_agent.config.settings import AppSettings
from support_agent.domain.events import ChunkEvent, DoneEvent, EscalationEvent, encode_frame
from support_agent.domain.models import Message
from support_agent.domain.services.prompts import ESCALATION_MESSAGE, FALLBACK_MESSAGE
from support_agent.interface.client.chat_client import ChatClient, message_to_payload
from support_agent.interface.http.api import create_app


class EscalatingLLM:
    async def complete(self, messages):
        return "ESCALATE"

    async def stream(self, messages):  # pragma: no cover - never reached
        yield ""


class FlatEmbedding:
    async def embed_texts(self, texts):
        return [[1.0, 0.0] for _ in texts]

    async def embed_query(self, text):
        return [1.0, 0.0]


def test_message_payload_uses_wire_names():
    msg = Message(
        role="assistant",
        content="Hello",
        id="abc",
        created_at=datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
        is_escalation=False,
    )

    assert message_to_payload(msg) == {
        "id": "abc",
        "role": "assistant",
        "content": "Hello",
        "createdAt": "2024-05-01T10:00:00+00:00",
        "isEscalation": False,
    }
    assert "isEscalation" not in message_to_payload(Message(role="user", content="Hi"))


@pytest.mark.asyncio
async def test_round_trip_against_server(tmp_path):
    settings = AppSettings(corpus_dir=str(tmp_path), canned_delay_s=0.0)
    container = Container(settings, llm=EscalatingLLM(), embedding=FlatEmbedding(), telemetry=NullTelemetry())
    await container.warm_up()
    app = create_app(container, warm_up=False)

    async with ChatClient("http://testserver", transport=httpx.ASGITransport(app=app)) as client:
        reply = await client.send_message([Message(role="user", content="Hi")], "Get me a human now")
        text = await reply.text()

    assert reply.is_escalation is True
    assert text == ESCALATION_MESSAGE


@pytest.mark.asyncio
async def test_request_body_shape():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = encode_frame(EscalationEvent(flag=False)) + encode_frame(ChunkEvent(text="ok")) + encode_frame(DoneEvent())
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    history = [Message(role="user", content="Hi", id="m1")]
    async with ChatClient("http://api.test", transport=httpx.MockTransport(handler)) as client:
        reply = await client.send_message(history, "Which card?")
        assert await reply.text() == "ok"

    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/api/chat"
    payload = json.loads(request.content)
    assert payload["newMessage"] == "Which card?"
    assert payload["messages"][0]["id"] == "m1"


@pytest.mark.asyncio
async def test_non_200_status_falls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Missing required fields: messages and newMessage"})

    async with ChatClient("http://api.test", transport=httpx.MockTransport(handler)) as client:
        reply = await client.send_message([], "hi")

    assert reply.is_escalation is False
    assert await reply.text() == FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_connection_failure_falls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with ChatClient("http://api.test", transport=httpx.MockTransport(handler)) as client:
        reply = await client.send_message([], "hi")

    assert reply.is_escalation is False
    assert await reply.text() == FALLBACK_MESSAGE
