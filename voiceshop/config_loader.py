"""
Config Loader - load and validate configuration
"""
import copy
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

CLASSIFIER_MODES = ("local", "remote")
SPEECH_PROVIDERS = ("remote", "elevenlabs", "local")

# env var -> (section, key)
ENV_OVERRIDES = {
    "VOICESHOP_REMOTE_URL": (("classifier",), "url"),
    "VOICESHOP_API_KEY": (("classifier",), "api_key"),
    "ELEVENLABS_API_KEY": (("speech_output", "elevenlabs"), "api_key"),
}


class ConfigLoader:
    """Loads ``config/config.json`` and builds the configured components"""

    def __init__(self, config_path: str = "config/config.json", environ: Optional[Mapping[str, str]] = None):
        self.config_path = config_path
        self.environ = os.environ if environ is None else environ
        self.config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(
                f"Config file not found: {self.config_path}\n"
                f"Create config/config.json based on config/config.example.json"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                self.config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Config file is not valid JSON: {self.config_path}: {e}") from e

        if not isinstance(self.config, dict):
            raise ConfigError("Config root must be a JSON object")

        self._apply_env_overrides()
        self._validate_config()

    def _apply_env_overrides(self):
        for variable, (path, key) in ENV_OVERRIDES.items():
            value = self.environ.get(variable)
            if not value:
                continue
            section = self.config
            for name in path:
                section = section.setdefault(name, {})
            section[key] = value
            logger.debug("Config %s.%s taken from %s", ".".join(path), key, variable)

    def _validate_config(self):
        required_fields = ["classifier", "speech_output"]
        for field in required_fields:
            if not isinstance(self.config.get(field), dict):
                raise ConfigError(f"Required config section missing: {field}")

        classifier = self.config["classifier"]
        mode = classifier.get("mode", "local")
        if mode not in CLASSIFIER_MODES:
            raise ConfigError(f"Unknown classifier mode: {mode}. Available: {', '.join(CLASSIFIER_MODES)}")
        if mode == "remote" and not classifier.get("url"):
            raise ConfigError("classifier.url is required for remote mode (or set VOICESHOP_REMOTE_URL)")
        self._validate_positive(classifier, "classifier.timeout", "timeout")

        speech = self.config["speech_output"]
        provider = speech.get("provider", "local")
        if provider not in SPEECH_PROVIDERS:
            raise ConfigError(f"Unknown speech provider: {provider}. Available: {', '.join(SPEECH_PROVIDERS)}")
        if provider == "remote" and not (speech.get("url") or classifier.get("url")):
            raise ConfigError("speech_output.url or classifier.url is required for the remote speech provider")
        self._validate_positive(speech, "speech_output.timeout", "timeout")

        max_entries = self.get_section("history").get("max_entries", 5)
        if not isinstance(max_entries, int) or max_entries < 1:
            raise ConfigError("history.max_entries must be a positive integer")

    @staticmethod
    def _validate_positive(section: Dict[str, Any], label: str, key: str):
        value = section.get(key)
        if value is None:
            return
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            raise ConfigError(f"{label} must be a positive number")

    def get(self, key: str, default=None):
        return self.config.get(key, default)

    def get_section(self, key: str) -> Dict[str, Any]:
        section = self.config.get(key) or {}
        return copy.deepcopy(section) if isinstance(section, dict) else {}

    def get_classifier(self):
        from .classifiers import LocalClassifier, RemoteClassifier

        section = self.get_section("classifier")
        if section.get("mode", "local") == "local":
            return LocalClassifier()
        return RemoteClassifier(
            url=section["url"],
            api_key=section.get("api_key") or None,
            timeout=float(section.get("timeout", 5.0)),
            product_limit=int(section.get("product_limit", 10)),
        )

    def get_speech_output(self):
        """SpeechOutputChannel, or None when speech output is disabled"""
        from .audio import (
            ElevenLabsSynthesizer,
            LocalSpeechEngine,
            RemoteSynthesizer,
            SpeechOutputChannel,
        )

        section = self.get_section("speech_output")
        if not section.get("enabled", True):
            return None

        local = section.get("local", {})
        local_engine = LocalSpeechEngine(
            language=local.get("language", "en"),
            rate=int(local.get("rate", 175)),
            volume=float(local.get("volume", 1.0)),
        )

        provider = section.get("provider", "local")
        timeout = float(section.get("timeout", 10.0))
        synthesizer = None
        if provider == "remote":
            classifier = self.get_section("classifier")
            synthesizer = RemoteSynthesizer(
                url=section.get("url") or classifier["url"],
                api_key=classifier.get("api_key") or None,
                timeout=timeout,
            )
        elif provider == "elevenlabs":
            eleven = section.get("elevenlabs", {})
            synthesizer = ElevenLabsSynthesizer(
                api_key=eleven.get("api_key") or None,
                voice_id=eleven.get("voice_id", "pNInz6obpgDQGcFmaJgB"),
                model_id=eleven.get("model_id", "eleven_monolingual_v1"),
                output_format=eleven.get("output_format", "pcm_22050"),
                timeout=timeout,
            )
            if not synthesizer.configured:
                logger.warning("ElevenLabs API key not set (ELEVENLABS_API_KEY); using local speech only")
                synthesizer = None

        return SpeechOutputChannel(synthesizer=synthesizer, local_engine=local_engine)

    def get_speech_input(self):
        from .audio import SpeechInputChannel, SpeechToText

        section = self.get_section("speech_input")
        recognizer = SpeechToText(
            model_size=section.get("model_size", "base"),
            device=section.get("device", "cpu"),
            language=section.get("language", "en"),
            duration=float(section.get("duration", 5.0)),
        )
        return SpeechInputChannel(recognizer)

    def get_command_log(self, sink=None):
        from .history import CommandLog

        return CommandLog(max_entries=self.get_section("history").get("max_entries", 5), sink=sink)

    def build_engine(self, registry=None, context=None, catalog_lookup=None, voice: bool = False, sink=None):
        """
        Wire a VoiceCommandEngine from configuration

        Args:
            registry: host CapabilityRegistry
            context: host SessionContext
            catalog_lookup: optional ``query -> products`` callable
            voice: also create the microphone input channel
            sink: optional durable command log sink
        """
        from .engine import VoiceCommandEngine
        from .resolver import EntityResolver

        return VoiceCommandEngine(
            classifier=self.get_classifier(),
            context=context,
            registry=registry,
            resolver=EntityResolver(catalog_lookup),
            speech_output=self.get_speech_output(),
            speech_input=self.get_speech_input() if voice else None,
            command_log=self.get_command_log(sink),
            confirm_actions=bool(self.get_section("dispatch").get("confirm_actions", False)),
        )
