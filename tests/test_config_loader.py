import json
import os

import pytest

from voiceshop.audio import tts
from voiceshop.audio.elevenlabs import ElevenLabsSynthesizer
from voiceshop.classifiers import LocalClassifier, RemoteClassifier
from voiceshop.config_loader import ConfigLoader
from voiceshop.engine import VoiceCommandEngine
from voiceshop.errors import ConfigError


def write_config(tmp_path, **sections):
    config = {
        "classifier": {"mode": "local"},
        "speech_output": {"enabled": False, "provider": "local"},
        "history": {"max_entries": 3},
    }
    config.update(sections)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path / "nope.json"), environ={})


def test_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ConfigError):
        ConfigLoader(str(path), environ={})


@pytest.mark.parametrize(
    "sections",
    [
        {"classifier": {"mode": "neural"}},
        {"classifier": {"mode": "remote"}},
        {"classifier": {"mode": "local", "timeout": 0}},
        {"speech_output": {"provider": "espeak"}},
        {"speech_output": {"provider": "remote"}},
        {"history": {"max_entries": 0}},
        {"speech_output": None},
    ],
)
def test_validation_errors(tmp_path, sections):
    with pytest.raises(ConfigError):
        ConfigLoader(write_config(tmp_path, **sections), environ={})


def test_config_error_is_a_value_error(tmp_path):
    with pytest.raises(ValueError):
        ConfigLoader(write_config(tmp_path, classifier={"mode": "neural"}), environ={})


def test_local_classifier_by_default(tmp_path):
    loader = ConfigLoader(write_config(tmp_path), environ={})
    assert isinstance(loader.get_classifier(), LocalClassifier)
    assert loader.get_speech_output() is None


def test_environment_overrides(tmp_path):
    environ = {
        "VOICESHOP_REMOTE_URL": "http://service/voice",
        "VOICESHOP_API_KEY": "secret",
        "ELEVENLABS_API_KEY": "eleven",
    }
    loader = ConfigLoader(write_config(tmp_path, classifier={"mode": "remote", "timeout": 2}), environ=environ)

    classifier = loader.get_classifier()
    assert isinstance(classifier, RemoteClassifier)
    assert classifier.url == "http://service/voice"
    assert classifier.api_key == "secret"
    assert classifier.timeout == 2.0
    assert loader.get_section("speech_output")["elevenlabs"]["api_key"] == "eleven"


def test_build_engine(tmp_path):
    loader = ConfigLoader(write_config(tmp_path, dispatch={"confirm_actions": True}), environ={})
    engine = loader.build_engine()
    assert isinstance(engine, VoiceCommandEngine)
    assert engine.confirm_actions is True
    assert engine.command_log.max_entries == 3
    assert engine.speech_output is None
    assert engine.speech_input is None


def test_example_config_is_valid():
    path = os.path.join(os.path.dirname(__file__), "..", "config", "config.example.json")
    loader = ConfigLoader(path, environ={})
    assert loader.get("classifier")["mode"] == "local"


@pytest.fixture
def no_platform_voices(monkeypatch):
    def init():
        raise RuntimeError("no speech driver")

    monkeypatch.setattr(tts.pyttsx3, "init", init)


def test_elevenlabs_without_key_speaks_locally(tmp_path, no_platform_voices):
    speech_output = {"enabled": True, "provider": "elevenlabs"}
    loader = ConfigLoader(write_config(tmp_path, speech_output=speech_output), environ={})
    channel = loader.get_speech_output()
    assert channel.synthesizer is None
    assert channel.local_engine.available is False


def test_elevenlabs_key_from_environment(tmp_path, no_platform_voices):
    speech_output = {"enabled": True, "provider": "elevenlabs", "timeout": 4}
    loader = ConfigLoader(write_config(tmp_path, speech_output=speech_output), environ={"ELEVENLABS_API_KEY": "eleven"})
    synthesizer = loader.get_speech_output().synthesizer
    assert isinstance(synthesizer, ElevenLabsSynthesizer)
    assert synthesizer.configured
    assert synthesizer.timeout == 4.0
