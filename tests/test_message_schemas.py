import base64
import json

import pytest
from pydantic import ValidationError

from agent_relay.models.agent_schemas import AgentErrorEvent, ConversationTextEvent, KeepAliveMessage
from agent_relay.models.message_schemas import (
    AudioFrame,
    AudioMessage,
    ErrorFrame,
    InitMessage,
    InterruptionFrame,
    TranscriptFrame,
)


class TestIncomingFrames:
    def test_init_message(self):
        message = InitMessage(type="init", uuid="call-123")
        assert message.uuid == "call-123"

    def test_init_message_without_uuid(self):
        assert InitMessage(type="init").uuid is None

    def test_init_message_wrong_type(self):
        with pytest.raises(ValidationError):
            InitMessage(type="audio", uuid="call-123")

    def test_audio_message_decodes(self):
        pcm = b"\x00\x01" * 160
        message = AudioMessage(type="audio", audio=base64.b64encode(pcm).decode())
        assert message.decode_audio() == pcm

    def test_audio_message_rejects_invalid_base64(self):
        with pytest.raises(ValidationError):
            AudioMessage(type="audio", audio="not base64!!")


class TestOutgoingFrames:
    def test_audio_frame(self):
        frame = AudioFrame.from_bytes(b"\x01\x02\x03")
        assert json.loads(frame.model_dump_json()) == {"type": "audio", "audio": "AQID"}

    def test_error_frame(self):
        frame = ErrorFrame(message="rate limit")
        assert json.loads(frame.model_dump_json()) == {"type": "error", "message": "rate limit"}

    def test_interruption_frame(self):
        assert json.loads(InterruptionFrame().model_dump_json()) == {"type": "interruption"}

    @pytest.mark.parametrize(
        "role,expected",
        [("user", "user"), ("assistant", "agent"), ("agent", "agent"), ("", "agent")],
    )
    def test_transcript_roles(self, role, expected):
        frame = TranscriptFrame.from_event(role, "hello", True)
        assert frame.role == expected

    def test_transcript_frame_carries_finality(self):
        frame = TranscriptFrame.from_event("user", "hel", False)
        assert json.loads(frame.model_dump_json()) == {
            "type": "transcript",
            "role": "user",
            "text": "hel",
            "final": False,
        }


class TestAgentSchemas:
    def test_keep_alive(self):
        assert json.loads(KeepAliveMessage().model_dump_json()) == {"type": "KeepAlive"}

    def test_conversation_text_defaults_to_final(self):
        event = ConversationTextEvent.from_payload(
            {"type": "ConversationText", "role": "assistant", "content": "Hi"}
        )
        assert event.role == "assistant"
        assert event.content == "Hi"
        assert event.is_final is True

    def test_conversation_text_partial(self):
        event = ConversationTextEvent.from_payload(
            {"type": "ConversationText", "role": "user", "content": "He", "is_final": False}
        )
        assert event.is_final is False

    def test_error_message_fallbacks(self):
        assert AgentErrorEvent(description="rate limit").error_message == "rate limit"
        assert AgentErrorEvent(message="bad settings").error_message == "bad settings"
        assert AgentErrorEvent().error_message == "Deepgram agent error"
