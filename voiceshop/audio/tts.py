"""
Text-to-Speech module - remote synthesis with a local pyttsx3 fallback
"""
import logging
import threading
from enum import Enum
from typing import Optional

import pyttsx3
import requests

from ..errors import SynthesisError
from .player import AudioPlayer, SynthesizedAudio

logger = logging.getLogger(__name__)


class LocalSpeechEngine:
    """Speech synthesis through the platform voices"""

    def __init__(self, language: str = "en", rate: int = 175, volume: float = 1.0):
        """
        Args:
            language: Preferred voice language code (en, uk, ...)
            rate: Speaking rate (words per minute)
            volume: Volume (0.0 - 1.0)
        """
        self.language = language
        self.rate = rate
        self.volume = volume
        self.engine = None

        self._init_engine()

    def _init_engine(self):
        try:
            self.engine = pyttsx3.init()
            self.engine.setProperty('rate', self.rate)
            self.engine.setProperty('volume', self.volume)

            for voice in self.engine.getProperty('voices') or []:
                languages = [str(lang).lower() for lang in (getattr(voice, 'languages', None) or [])]
                if any(self.language in lang for lang in languages):
                    self.engine.setProperty('voice', voice.id)
                    logger.debug("Using voice %s", voice.name)
                    break
        except Exception as e:
            logger.warning("Local TTS initialization failed: %s", e)
            self.engine = None

    @property
    def available(self) -> bool:
        return self.engine is not None

    def speak(self, text: str, stop_event: Optional[threading.Event] = None) -> bool:
        """
        Speak text, blocking until done

        Returns:
            True if the engine ran, False if unavailable or already stopped
        """
        if not self.engine or not text:
            return False
        if stop_event is not None and stop_event.is_set():
            return False

        logger.info("TTS (local): %s", text)
        self.engine.say(text)
        self.engine.runAndWait()
        return True

    def stop(self):
        if self.engine:
            try:
                self.engine.stop()
            except Exception as e:
                logger.debug("Local TTS stop failed: %s", e)


class RemoteSynthesizer:
    """Calls the service ``text-to-speech`` action"""

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def synthesize(self, text: str) -> SynthesizedAudio:
        """
        Raises:
            SynthesisUnavailable: the service answered ``audio: null``
            SynthesisError: any other failure
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = self.session.post(
                self.url,
                json={"action": "text-to-speech", "text": text},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"synthesis request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise SynthesisError(f"synthesis service returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise SynthesisError("synthesis service returned a non-JSON body") from e
        return SynthesizedAudio.from_payload(payload)


class SpeakingState(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


class SpeechOutputChannel:
    """Speaks responses, one utterance at a time

    Each ``speak`` cancels whatever is still playing before it starts, so two
    utterances never overlap. The primary synthesizer is tried first; any
    failure there (network, missing key, ``audio: null``, bad audio, playback
    error) falls back to the local engine. If both fail the error is logged
    and the text is simply not spoken.
    """

    def __init__(
        self,
        synthesizer=None,
        local_engine: Optional[LocalSpeechEngine] = None,
        player: Optional[AudioPlayer] = None,
        join_timeout: float = 5.0,
    ):
        """
        Args:
            synthesizer: object with ``synthesize(text) -> SynthesizedAudio``
                (RemoteSynthesizer or ElevenLabsSynthesizer), or None
            local_engine: fallback engine, or None
            player: playback for synthesized audio
            join_timeout: how long cancel waits for the worker to exit
        """
        self.synthesizer = synthesizer
        self.local_engine = local_engine
        self.player = player or AudioPlayer()
        self.join_timeout = join_timeout

        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._state = SpeakingState.IDLE

    @property
    def state(self) -> SpeakingState:
        with self._lock:
            return self._state

    def speak(self, text: str, block: bool = True) -> None:
        self.cancel()
        if not text or not text.strip():
            return

        stop_event = threading.Event()
        worker = threading.Thread(
            target=self._run, args=(text, stop_event), name="speech-output", daemon=True
        )
        with self._lock:
            self._stop_event = stop_event
            self._worker = worker
            self._state = SpeakingState.SPEAKING
        worker.start()

        if block:
            worker.join()

    def cancel(self) -> None:
        with self._lock:
            worker = self._worker
            stop_event = self._stop_event
        if worker is None:
            return

        stop_event.set()
        self.player.stop()
        if self.local_engine is not None:
            self.local_engine.stop()

        if worker is not threading.current_thread():
            worker.join(self.join_timeout)
            if worker.is_alive():
                logger.warning("Speech worker did not stop within %.1fs", self.join_timeout)

        with self._lock:
            if self._worker is worker:
                self._worker = None
                self._state = SpeakingState.IDLE

    def _run(self, text: str, stop_event: threading.Event) -> None:
        try:
            self._deliver(text, stop_event)
        except Exception:
            logger.exception("Speech output failed; response not spoken")
        finally:
            with self._lock:
                if self._stop_event is stop_event:
                    self._worker = None
                    self._state = SpeakingState.IDLE

    def _deliver(self, text: str, stop_event: threading.Event) -> None:
        if self.synthesizer is not None:
            try:
                audio = self.synthesizer.synthesize(text)
                if stop_event.is_set():
                    return
                self.player.play(audio, stop_event)
                return
            except SynthesisError as e:
                logger.info("Primary synthesis unavailable (%s); using local voice", e)
            except Exception as e:
                logger.warning("Primary synthesis playback failed (%s); using local voice", e)

        if stop_event.is_set():
            return
        if self.local_engine is None or not self.local_engine.available:
            logger.error("No speech engine available; response not spoken: %s", text)
            return
        self.local_engine.speak(text, stop_event)
