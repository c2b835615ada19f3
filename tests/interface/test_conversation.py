import pytest

from support_agent.domain.errors import ProtocolError
from support_agent.domain.events import ChunkEvent, DoneEvent, ErrorEvent, EscalationEvent, encode_frame
from support_agent.domain.models import Message
from support_agent.interface.client.conversation import accumulate_reply
from support_agent.interface.client.stream_decoder import decode_stream


async def source(*frames: bytes):
    for frame in frames:
        yield frame


@pytest.mark.asyncio
async def test_reply_is_appended_and_grows():
    conversation = [Message(role="user", content="I want a human")]
    reply = await decode_stream(
        source(
            encode_frame(EscalationEvent(flag=True)),
            encode_frame(ChunkEvent(text="I understand ")),
            encode_frame(ChunkEvent(text="your frustration.")),
            encode_frame(DoneEvent()),
        )
    )

    message = await accumulate_reply(conversation, reply)

    assert conversation[-1] is message
    assert message.role == "assistant"
    assert message.is_escalation is True
    assert message.content == "I understand your frustration."


@pytest.mark.asyncio
async def test_partial_content_is_kept_on_error():
    conversation: list[Message] = []
    reply = await decode_stream(
        source(
            encode_frame(EscalationEvent(flag=False)),
            encode_frame(ChunkEvent(text="The card ")),
            encode_frame(ErrorEvent(message="Stream error occurred")),
        )
    )

    with pytest.raises(ProtocolError):
        await accumulate_reply(conversation, reply)

    (message,) = conversation
    assert message.content == "The card "
    assert message.is_escalation is False
