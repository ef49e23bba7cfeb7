"""
Typed option structs for every endpoint.

All models accept unknown keys (``extra="allow"``) so options introduced by the
service later can be passed without a client upgrade. Services accept either a
model or a plain dict; both go through ``utils.to_options``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from src.deepgram_client.errors import ConfigError
from utils.ml_logging import get_logger

logger = get_logger(__name__)


class _Options(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Listen
# ---------------------------------------------------------------------------
class LiveOptions(_Options):
    """Query options for a live transcription session."""

    model: Optional[str] = None
    language: Optional[str] = None
    version: Optional[str] = None
    tier: Optional[str] = None
    encoding: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    multichannel: Optional[bool] = None
    interim_results: Optional[bool] = None
    endpointing: Optional[Union[bool, int]] = None
    utterance_end_ms: Optional[int] = None
    vad_events: Optional[bool] = None
    punctuate: Optional[bool] = None
    smart_format: Optional[bool] = None
    numerals: Optional[bool] = None
    filler_words: Optional[bool] = None
    profanity_filter: Optional[bool] = None
    utterances: Optional[bool] = None
    redact: Optional[Union[List[str], bool, str]] = None
    replace: Optional[Union[List[str], str]] = None
    search: Optional[Union[List[str], str]] = None
    keywords: Optional[Union[List[str], str]] = None
    keyterm: Optional[List[str]] = None
    tag: Optional[List[str]] = None


class PrerecordedOptions(_Options):
    """Query options for prerecorded transcription."""

    model: Optional[str] = None
    language: Optional[str] = None
    version: Optional[str] = None
    tier: Optional[str] = None
    encoding: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    multichannel: Optional[bool] = None
    alternatives: Optional[int] = None
    callback: Optional[str] = None
    callback_method: Optional[str] = None
    detect_entities: Optional[bool] = None
    detect_language: Optional[bool] = None
    detect_topics: Optional[bool] = None
    diarize: Optional[bool] = None
    diarize_version: Optional[str] = None
    dictation: Optional[bool] = None
    punctuate: Optional[bool] = None
    smart_format: Optional[bool] = None
    numerals: Optional[bool] = None
    measurements: Optional[bool] = None
    filler_words: Optional[bool] = None
    paragraphs: Optional[bool] = None
    profanity_filter: Optional[bool] = None
    utterances: Optional[bool] = None
    utt_split: Optional[float] = None
    sentiment: Optional[bool] = None
    intents: Optional[bool] = None
    topics: Optional[bool] = None
    summarize: Optional[Union[bool, str]] = None
    custom_intent: Optional[Union[List[str], str]] = None
    custom_intent_mode: Optional[str] = None
    custom_topic: Optional[Union[List[str], str]] = None
    custom_topic_mode: Optional[str] = None
    redact: Optional[Union[List[str], bool, str]] = None
    replace: Optional[Union[List[str], str]] = None
    search: Optional[Union[List[str], str]] = None
    keywords: Optional[Union[List[str], str]] = None
    keyterm: Optional[List[str]] = None
    extra: Optional[Union[List[str], str]] = None
    tag: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Speak
# ---------------------------------------------------------------------------
class SpeakOptions(_Options):
    """Query options for REST synthesis."""

    model: Optional[str] = None
    encoding: Optional[str] = None
    container: Optional[str] = None
    sample_rate: Optional[int] = None
    bit_rate: Optional[int] = None
    callback: Optional[str] = None
    callback_method: Optional[str] = None
    tag: Optional[List[str]] = None


class SpeakLiveOptions(_Options):
    """Query options for a live synthesis session."""

    model: Optional[str] = None
    encoding: Optional[str] = None
    sample_rate: Optional[int] = None
    mip_opt_out: Optional[bool] = None


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------
class AnalyzeOptions(_Options):
    """Query options for text intelligence."""

    language: Optional[str] = None
    sentiment: Optional[bool] = None
    topics: Optional[bool] = None
    intents: Optional[bool] = None
    summarize: Optional[Union[bool, str]] = None
    custom_intent: Optional[Union[List[str], str]] = None
    custom_intent_mode: Optional[str] = None
    custom_topic: Optional[Union[List[str], str]] = None
    custom_topic_mode: Optional[str] = None
    callback: Optional[str] = None
    callback_method: Optional[str] = None


# ---------------------------------------------------------------------------
# Manage
# ---------------------------------------------------------------------------
class KeyOptions(_Options):
    """Body of a create-key request."""

    comment: str
    scopes: List[str] = Field(default_factory=list)
    tags: Optional[List[str]] = None
    time_to_live_in_seconds: Optional[int] = None
    expiration_date: Optional[str] = None


# ---------------------------------------------------------------------------
# Agent settings
# ---------------------------------------------------------------------------
class Provider(_Options):
    type: str
    model: Optional[str] = None


class ListenConfig(_Options):
    model: Optional[str] = None
    language: Optional[str] = None
    smart_format: Optional[bool] = None
    encoding: Optional[str] = None
    channels: Optional[int] = None
    sample_rate: Optional[int] = None
    interim_results: Optional[bool] = None
    punctuate: Optional[bool] = None
    profanity_filter: Optional[bool] = None
    redact: Optional[List[str]] = None
    endpointing: Optional[Union[bool, int]] = None
    utterance_end_ms: Optional[int] = None
    vad_turnoff: Optional[int] = None
    provider: Optional[Provider] = None


class ThinkConfig(_Options):
    provider: Optional[Provider] = None
    model: Optional[str] = None
    instructions: Optional[str] = None
    knowledge: Optional[str] = None
    functions: Optional[List[Dict[str, Any]]] = None


class SpeakConfig(_Options):
    model: Optional[str] = None
    encoding: Optional[str] = None
    container: Optional[str] = None
    sample_rate: Optional[int] = None
    provider: Optional[Provider] = None


class AgentConfig(_Options):
    listen: Optional[ListenConfig] = None
    think: Optional[ThinkConfig] = None
    speak: Optional[SpeakConfig] = None


class AgentSettings(_Options):
    """
    Full configuration sent as the first frame of an agent session and on
    every mid-session settings update.
    """

    agent: AgentConfig = Field(default_factory=AgentConfig)
    version: Optional[str] = None
    format: Optional[str] = None
    encoding: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    language: Optional[str] = None
    greeting: Optional[str] = None

    @classmethod
    def default(cls) -> "AgentSettings":
        return cls(
            agent=AgentConfig(
                listen=ListenConfig(model="nova-2", language="en"),
                think=ThinkConfig(
                    provider=Provider(type="open_ai", model="gpt-4o-mini"),
                    instructions="You are a helpful assistant.",
                ),
                speak=SpeakConfig(model="aura-2-thalia-en"),
            ),
            format="text",
            encoding="linear16",
            sample_rate=16000,
            channels=1,
        )

    @classmethod
    def from_yaml(cls, path: str, base: Optional["AgentSettings"] = None) -> "AgentSettings":
        """
        Load settings from a YAML file, merged over ``base`` (or the defaults).

        The ``agent`` section is merged one sub-section (listen/think/speak) at a
        time so a file can override a single key without repeating the rest.

        Raises:
            ConfigError: If the file cannot be read or does not hold a mapping.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                from_yaml = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not load agent settings from {path}: {e}", key="agent_settings") from e

        if not isinstance(from_yaml, dict):
            raise ConfigError(f"Agent settings YAML is not a mapping: {path}", key="agent_settings")

        logger.info(f"Loading agent settings from {path}")
        merged = (base or cls.default()).to_dict()
        for key, value in from_yaml.items():
            if key == "agent" and isinstance(value, dict):
                agent_section = merged.setdefault("agent", {})
                for part, part_value in value.items():
                    if isinstance(part_value, dict) and isinstance(agent_section.get(part), dict):
                        agent_section[part] = {**agent_section[part], **part_value}
                    else:
                        agent_section[part] = part_value
            else:
                merged[key] = value
        return cls.model_validate(merged)
