"""
Tests for voice agent sessions.
"""

import asyncio
import json

import pytest

from src.deepgram_client.errors import ArgumentError, JsonError, WebSocketError
from src.deepgram_client.events import FunctionCallRequestEvent, SettingsAppliedEvent
from src.deepgram_client.live.agent import AgentSession
from src.deepgram_client.messages import SpeakText
from src.deepgram_client.options import AgentSettings

SETTINGS = {
    "agent": {
        "listen": {"model": "nova-2"},
        "think": {"provider": {"type": "open_ai", "model": "gpt-4o-mini"}, "instructions": "Be brief."},
        "speak": {"model": "aura-2-thalia-en"},
    },
    "encoding": "linear16",
    "sample_rate": 16000,
}


@pytest.fixture
async def agent_session(config, connect_calls, recorder):
    """Fixture providing a started agent session."""
    session = AgentSession(config, SETTINGS, recorder, keepalive_interval=60)
    await session.start()
    yield session
    await session.close()


class TestSettingsHandshake:
    """Test that settings are always the first frame."""

    @pytest.mark.asyncio
    async def test_settings_written_before_start_returns(self, agent_session, mock_websocket):
        assert len(mock_websocket.sent) == 1
        frame = json.loads(mock_websocket.sent[0])
        assert frame["type"] == "SettingsConfiguration"
        assert frame["settings"] == SETTINGS

    @pytest.mark.asyncio
    async def test_settings_precede_immediate_commands(self, agent_session, mock_websocket):
        await agent_session.send_text("hi")
        await agent_session.send_audio(b"\x01\x02")

        assert mock_websocket.frame_types()[0] == "SettingsConfiguration"
        assert json.loads(mock_websocket.sent[1]) == {"type": "user_message", "text": "hi"}
        assert mock_websocket.sent[2] == b"\x01\x02"
        assert mock_websocket.frame_types().count("SettingsConfiguration") == 1

    @pytest.mark.asyncio
    async def test_settings_first_with_slow_transport(self, config, monkeypatch, recorder):
        """Even when writes are slow, a command sent right after start follows the settings."""
        sent = []

        class SlowSocket:
            async def send(self, frame):
                await asyncio.sleep(0.02)
                sent.append(frame)

            async def recv(self):
                await asyncio.Event().wait()

            async def close(self, code=1000, reason=""):
                pass

        async def fake_connect(url, **kwargs):
            return SlowSocket()

        monkeypatch.setattr("src.deepgram_client.live.session.connect", fake_connect)
        session = AgentSession(config, SETTINGS, recorder, keepalive_interval=60)
        await session.start()
        await session.send_text("first")

        assert json.loads(sent[0])["type"] == "SettingsConfiguration"
        assert json.loads(sent[1])["type"] == "user_message"
        await session.close()

    @pytest.mark.asyncio
    async def test_no_query_string(self, agent_session, connect_calls):
        assert connect_calls[0]["url"] == "wss://api.example.com/v1/agent"

    @pytest.mark.asyncio
    async def test_default_settings(self, config, connect_calls, mock_websocket, recorder):
        session = AgentSession(config, None, recorder, keepalive_interval=60)
        await session.start()

        frame = json.loads(mock_websocket.sent[0])
        assert frame["settings"] == AgentSettings.default().to_dict()
        await session.close()

    @pytest.mark.asyncio
    async def test_settings_model(self, config, connect_calls, mock_websocket, recorder):
        settings = AgentSettings.default()
        settings.greeting = "Hello there"
        session = AgentSession(config, settings, recorder, keepalive_interval=60)
        await session.start()

        frame = json.loads(mock_websocket.sent[0])
        assert frame["settings"]["greeting"] == "Hello there"
        await session.close()

    @pytest.mark.asyncio
    async def test_rejected_settings_write_fails_start(self, config, connect_calls, mock_websocket, recorder):
        mock_websocket.fail_sends = True
        session = AgentSession(config, SETTINGS, recorder, keepalive_interval=60)

        with pytest.raises(WebSocketError):
            await session.start()

        assert not session.is_connected
        assert recorder.types()[-1] == "Disconnected"

    def test_invalid_settings(self, config, recorder):
        with pytest.raises(ArgumentError):
            AgentSession(config, "not settings", recorder)


class TestAgentCommands:
    """Test the agent command vocabulary."""

    @pytest.mark.asyncio
    async def test_respond_to_function_call(self, agent_session, mock_websocket):
        await agent_session.respond_to_function_call("call-1", {"temperature": 21})

        assert json.loads(mock_websocket.sent[-1]) == {
            "type": "function_call_response",
            "function_call_id": "call-1",
            "result": {"temperature": 21},
        }

    @pytest.mark.asyncio
    async def test_respond_requires_id(self, agent_session):
        with pytest.raises(ArgumentError):
            await agent_session.respond_to_function_call("", "ok")

    @pytest.mark.asyncio
    async def test_inject_message_forms(self, agent_session, mock_websocket):
        await agent_session.inject_message({"type": "InjectAgentMessage", "role": "assistant", "content": "One moment."})
        await agent_session.inject_message("InjectAgentMessage", "assistant", "Still here.")

        frames = mock_websocket.text_frames()[-2:]
        assert frames[0] == {"type": "InjectAgentMessage", "role": "assistant", "content": "One moment."}
        assert frames[1]["content"] == "Still here."

    @pytest.mark.asyncio
    async def test_inject_message_requires_fields(self, agent_session):
        with pytest.raises(ArgumentError):
            await agent_session.inject_message({"type": "InjectAgentMessage", "role": "assistant", "content": ""})
        with pytest.raises(ArgumentError):
            await agent_session.inject_message({"type": "InjectAgentMessage"})

    @pytest.mark.asyncio
    async def test_update_settings(self, agent_session, mock_websocket):
        updated = {**SETTINGS, "greeting": "Welcome back"}
        await agent_session.update_settings(updated)

        frame = mock_websocket.text_frames()[-1]
        assert frame == {"type": "SettingsConfiguration", "settings": updated}
        assert agent_session.settings == updated

    @pytest.mark.asyncio
    async def test_update_settings_from_model(self, agent_session, mock_websocket):
        settings = AgentSettings.default()
        settings.greeting = "Switching voices"
        await agent_session.update_settings(settings)

        frame = mock_websocket.text_frames()[-1]
        assert frame["type"] == "SettingsConfiguration"
        assert frame["settings"] == settings.to_dict()
        assert agent_session.settings["greeting"] == "Switching voices"

    @pytest.mark.asyncio
    async def test_speak_command_not_accepted(self, agent_session):
        with pytest.raises(ArgumentError):
            await agent_session.send(SpeakText(text="hi"))

    @pytest.mark.asyncio
    async def test_close_frame(self, agent_session, mock_websocket):
        await agent_session.close()
        assert mock_websocket.frame_types()[-1] == "Close"


class TestAgentEvents:
    """Test the agent inbound vocabulary."""

    @pytest.mark.asyncio
    async def test_function_call_request(self, agent_session, mock_websocket, recorder, wait_until):
        mock_websocket.feed(
            {
                "type": "FunctionCallRequest",
                "function_call_id": "call-9",
                "function_name": "get_weather",
                "arguments": '{"city": "Paris"}',
            }
        )

        await wait_until(lambda: recorder.of_type("FunctionCallRequest"))
        event = recorder.of_type("FunctionCallRequest")[0]
        assert isinstance(event, FunctionCallRequestEvent)
        assert event.function_name == "get_weather"
        assert event.parse_arguments() == {"city": "Paris"}

    @pytest.mark.asyncio
    async def test_conversation_flow(self, agent_session, mock_websocket, recorder, wait_until):
        mock_websocket.feed(
            {"type": "Welcome", "request_id": "r-1"},
            {"type": "SettingsApplied"},
            {"type": "UserStartedSpeaking"},
            {"type": "ConversationText", "role": "user", "content": "hi"},
            {"type": "AgentThinking", "content": "..."},
            {"type": "AgentStartedSpeaking", "total_latency": 0.4},
            b"\x00\x01",
            {"type": "AgentAudioDone"},
            {"type": "InjectionRefused", "message": "busy"},
        )

        await wait_until(lambda: recorder.of_type("InjectionRefused"))
        assert recorder.types() == [
            "Connected",
            "Welcome",
            "SettingsApplied",
            "UserStartedSpeaking",
            "ConversationText",
            "AgentThinking",
            "AgentStartedSpeaking",
            "Audio",
            "AgentAudioDone",
            "InjectionRefused",
        ]
        assert isinstance(recorder.events[2], SettingsAppliedEvent)
        assert recorder.events[4].content == "hi"


class TestFunctionCallEvent:
    """Test FunctionCallRequestEvent decoding helpers."""

    def test_nested_shape(self):
        event = FunctionCallRequestEvent.model_validate(
            {"type": "FunctionCallRequest", "function_call": {"id": "c1", "name": "f", "arguments": {"a": 1}}}
        )
        assert event.function_call_id == "c1"
        assert event.function_name == "f"
        assert event.parse_arguments() == {"a": 1}

    def test_bad_arguments(self):
        event = FunctionCallRequestEvent(function_call_id="c1", function_name="f", arguments="{oops")
        with pytest.raises(JsonError):
            event.parse_arguments()
