import base64
import json
import random
import sys

from conftest import build_context
from voiceshop import orchestrator
from voiceshop.audio.player import SynthesizedAudio
from voiceshop.errors import SynthesisError, SynthesisUnavailable


def build_payload(**overrides):
    payload = {
        "action": "process-command",
        "text": "",
        "userId": "user-1",
        "context": build_context().to_request_context(),
    }
    payload.update(overrides)
    return payload


class StubSynthesizer:
    def __init__(self, result):
        self.result = result
        self.texts = []

    def synthesize(self, text):
        self.texts.append(text)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_add_first_product():
    result = orchestrator.process_request(build_payload(text="Add the first product"))
    assert result["success"] is True
    assert result["intent"] == "add_to_cart_position"
    assert result["data"] == {"position": 0}
    assert result["response"]


def test_missing_user_gates_shopping():
    payload = build_payload(text="add the first product to my cart")
    del payload["userId"]
    result = orchestrator.process_request(payload)
    assert result["intent"] == "auth_required"


def test_help_reads_checkout_flag_from_context():
    context = build_context(page="checkout", on_checkout=True).to_request_context()
    result = orchestrator.process_request(build_payload(text="help", context=context), rng=random.Random(1))
    assert result["intent"] == "help"
    assert "Use card 1" in result["response"]


def test_missing_text_is_an_error():
    result = orchestrator.process_request(build_payload(text="   "))
    assert result["success"] is False
    assert result["intent"] == "error"
    assert result["error"] == "Text required for command processing"


def test_invalid_action():
    result = orchestrator.process_request(build_payload(action="dance", text="hello"))
    assert result["success"] is False
    assert result["error"] == "Invalid action specified"


def test_invalid_context_is_an_error():
    result = orchestrator.process_request(build_payload(text="hello", context={"currentProducts": [{"name": "no id"}]}))
    assert result["success"] is False
    assert result["intent"] == "error"


def test_text_to_speech_returns_audio():
    audio = SynthesizedAudio(data=b"\x00\x01" * 4, content_type="audio/pcm", sample_rate=22050)
    synthesizer = StubSynthesizer(audio)
    result = orchestrator.process_request({"action": "text-to-speech", "text": "Hello"}, synthesizer=synthesizer)
    assert result["success"] is True
    assert base64.b64decode(result["audio"]) == audio.data
    assert result["contentType"] == "audio/pcm"
    assert result["sampleRate"] == 22050
    assert synthesizer.texts == ["Hello"]


def test_text_to_speech_without_provider_returns_null_audio():
    result = orchestrator.process_request(
        {"action": "text-to-speech", "text": "Hello"},
        synthesizer=StubSynthesizer(SynthesisUnavailable("ElevenLabs not configured")),
    )
    assert result == {"success": True, "audio": None, "message": "ElevenLabs not configured, using local speech"}

    failed = orchestrator.process_request(
        {"action": "text-to-speech", "text": "Hello"},
        synthesizer=StubSynthesizer(SynthesisError("ElevenLabs API error: 401")),
    )
    assert failed["success"] is True
    assert failed["audio"] is None


def test_text_to_speech_default_provider_needs_a_key(monkeypatch):
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
    result = orchestrator.process_request({"action": "text-to-speech", "text": "Hello"})
    assert result["success"] is True
    assert result["audio"] is None


def test_cli_roundtrip(tmp_path, monkeypatch, capsys):
    payload = build_payload(text="Show me sneakers")
    payload_json = json.dumps(payload, ensure_ascii=False)
    input_path = tmp_path / "input.json"
    input_path.write_text(payload_json, encoding="utf-8")

    stdin = input_path.open("r", encoding="utf-8")
    monkeypatch.setattr(sys, "stdin", stdin)
    try:
        assert orchestrator.main() == 0
    finally:
        stdin.close()

    captured = capsys.readouterr()
    output = json.loads(captured.out)
    assert output["intent"] == "browse_products"
    assert output["data"]["category"] == "shoes"


def test_cli_rejects_bad_json(tmp_path, monkeypatch):
    input_path = tmp_path / "input.json"
    input_path.write_text("{not json", encoding="utf-8")

    stdin = input_path.open("r", encoding="utf-8")
    monkeypatch.setattr(sys, "stdin", stdin)
    try:
        assert orchestrator.main() == 2
    finally:
        stdin.close()
