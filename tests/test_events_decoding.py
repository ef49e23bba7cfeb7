"""
Tests for inbound frame decoding.
"""

import json

import pytest

from src.deepgram_client.errors import JsonError, WebSocketError
from src.deepgram_client.events import (
    AGENT_EVENTS,
    LISTEN_EVENTS,
    SPEAK_EVENTS,
    DecodeErrorEvent,
    ErrorEvent,
    MetadataEvent,
    ResultsEvent,
    UnhandledEvent,
    UserStartedSpeakingEvent,
    decode_text_frame,
)


class TestDecodeTextFrame:
    def test_known_type(self):
        event = decode_text_frame(json.dumps({"type": "Metadata", "request_id": "r1", "sha256": "abc"}), LISTEN_EVENTS)
        assert isinstance(event, MetadataEvent)
        assert event.request_id == "r1"
        # unknown fields are kept
        assert event.payload["sha256"] == "abc"

    @pytest.mark.parametrize("text", ["{not json", "", "[1, 2]", "42", '"Results"'])
    def test_undecodable(self, text):
        event = decode_text_frame(text, LISTEN_EVENTS)
        assert isinstance(event, DecodeErrorEvent)
        assert isinstance(event.error, JsonError)
        assert event.data == text

    def test_unknown_type(self):
        event = decode_text_frame('{"type":"FutureFeature","x":1}', LISTEN_EVENTS)
        assert isinstance(event, UnhandledEvent)
        assert event.payload == {"type": "FutureFeature", "x": 1}

    def test_missing_type(self):
        event = decode_text_frame('{"x":1}', LISTEN_EVENTS)
        assert isinstance(event, UnhandledEvent)
        assert event.payload_type is None

    def test_type_from_other_vocabulary_is_unhandled(self):
        event = decode_text_frame('{"type":"Flushed"}', LISTEN_EVENTS)
        assert isinstance(event, UnhandledEvent)
        assert decode_text_frame('{"type":"Flushed"}', SPEAK_EVENTS).type == "Flushed"

    def test_schema_mismatch_keeps_the_tagged_event(self):
        event = decode_text_frame('{"type":"Results","is_final":"maybe"}', LISTEN_EVENTS)
        assert isinstance(event, ResultsEvent)
        assert event.type == "Results"
        assert event.is_final == "maybe"

    def test_numeric_error_code(self):
        event = decode_text_frame('{"type":"Error","message":"boom","code":1011}', LISTEN_EVENTS)
        assert isinstance(event, ErrorEvent)
        assert event.type == "Error"
        assert event.code == 1011
        assert event.text == "boom"

    def test_numeric_timestamp(self):
        event = decode_text_frame('{"type":"UserStartedSpeaking","timestamp":12.5}', AGENT_EVENTS)
        assert isinstance(event, UserStartedSpeakingEvent)
        assert event.timestamp == 12.5


class TestEventModels:
    def test_results_transcript(self):
        event = ResultsEvent(channel={"alternatives": [{"transcript": "hi"}]})
        assert event.transcript == "hi"
        assert ResultsEvent().transcript == ""

    def test_error_event(self):
        event = decode_text_frame('{"type":"Error","description":"bad audio","code":"BAD"}', AGENT_EVENTS)
        assert isinstance(event, ErrorEvent)
        assert event.text == "bad audio"
        error = event.to_exception()
        assert isinstance(error, WebSocketError)
        assert "bad audio" in str(error)
