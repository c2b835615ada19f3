from __future__ import annotations

from collections.abc import MutableSequence

from support_agent.domain.models import Message
from support_agent.interface.client.stream_decoder import StreamedReply


async def accumulate_reply(conversation: MutableSequence[Message], reply: StreamedReply) -> Message:
    """Append one assistant message and grow it as fragments arrive.

    The escalation flag is fixed when the message is created; only content
    changes afterwards. ProtocolError propagates after the partial content
    has been kept on the message.
    """
    message = Message(role="assistant", content="", is_escalation=reply.is_escalation)
    conversation.append(message)
    async with reply:
        async for fragment in reply.fragments:
            message.append(fragment)
    return message
