"""
Speech-to-Text module based on Faster Whisper
"""
import logging
import threading
from enum import Enum
from typing import Optional

import numpy as np

from ..errors import (
    AlreadyListeningError,
    ListeningCancelledError,
    SpeechInputError,
    SpeechRecognitionError,
)

logger = logging.getLogger(__name__)


class SpeechToText:
    """Speech recognition over a fixed-length microphone recording"""

    def __init__(
        self,
        model_size: str = "base",
        device: str = "cpu",
        language: str = "en",
        duration: float = 5.0,
        compute_type: str = "int8",
    ):
        """
        Args:
            model_size: Whisper model size (tiny, base, small, medium, large)
            device: cpu or cuda
            language: Recognition language (en, uk, ...)
            duration: Recording length in seconds
            compute_type: CTranslate2 compute type
        """
        self.model_size = model_size
        self.device = device
        self.language = language
        self.duration = duration
        self.compute_type = compute_type
        self.model = None
        self.sample_rate = 16000  # Whisper expects 16kHz

    def _load_model(self):
        if self.model is not None:
            return self.model
        from faster_whisper import WhisperModel

        logger.info("Loading Whisper model '%s'...", self.model_size)
        self.model = WhisperModel(self.model_size, device=self.device, compute_type=self.compute_type)
        logger.info("Whisper model loaded")
        return self.model

    def record_audio(self, duration: Optional[float] = None) -> np.ndarray:
        """
        Record from the default microphone; ``cancel()`` cuts it short

        Returns:
            Mono float32 samples
        """
        import sounddevice as sd

        duration = duration or self.duration
        logger.debug("Recording %.1f seconds...", duration)
        audio = sd.rec(
            int(duration * self.sample_rate),
            samplerate=self.sample_rate,
            channels=1,
            dtype=np.float32,
        )
        sd.wait()
        logger.debug("Recording finished")
        return audio.flatten()

    def transcribe(self, audio: np.ndarray) -> str:
        model = self._load_model()
        if audio.dtype != np.float32:
            audio = audio.astype(np.float32)

        segments, _info = model.transcribe(
            audio,
            language=self.language,
            beam_size=5,
            vad_filter=True,
            vad_parameters=dict(min_silence_duration_ms=500),
        )
        return " ".join(segment.text.strip() for segment in segments).strip()

    def listen(self, stop_event: threading.Event) -> Optional[str]:
        """Record then transcribe; None if stopped before transcription."""
        audio = self.record_audio()
        if stop_event.is_set():
            return None
        return self.transcribe(audio)

    def cancel(self):
        import sounddevice as sd

        sd.stop()


class ListeningState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class SpeechInputChannel:
    """Single-shot, mutually exclusive listening sessions

    Args:
        recognizer: object with ``listen(stop_event) -> Optional[str]`` and
            ``cancel()``, normally a SpeechToText
    """

    def __init__(self, recognizer):
        self.recognizer = recognizer
        self._lock = threading.Lock()
        self._state = ListeningState.IDLE
        self._stop_event = threading.Event()

    @property
    def state(self) -> ListeningState:
        with self._lock:
            return self._state

    @property
    def is_listening(self) -> bool:
        return self.state == ListeningState.LISTENING

    def start(self) -> str:
        """
        Capture one utterance

        Returns:
            The non-empty transcript

        Raises:
            AlreadyListeningError: a session is already active
            SpeechRecognitionError: the recognizer failed or heard nothing
            ListeningCancelledError: ``stop()`` was called first
        """
        with self._lock:
            if self._state == ListeningState.LISTENING:
                raise AlreadyListeningError("Already listening")
            self._state = ListeningState.LISTENING
            stop_event = threading.Event()
            self._stop_event = stop_event

        try:
            try:
                transcript = self.recognizer.listen(stop_event)
            except SpeechInputError:
                raise
            except Exception as e:
                if stop_event.is_set():
                    raise ListeningCancelledError("Listening stopped") from e
                raise SpeechRecognitionError(f"Speech recognition failed: {e}") from e

            if stop_event.is_set():
                raise ListeningCancelledError("Listening stopped")
            transcript = (transcript or "").strip()
            if not transcript:
                raise SpeechRecognitionError("No speech recognized")
            logger.info("Recognized: %s", transcript)
            return transcript
        finally:
            with self._lock:
                self._state = ListeningState.IDLE

    def stop(self) -> None:
        with self._lock:
            if self._state != ListeningState.LISTENING:
                return
            self._stop_event.set()
        try:
            self.recognizer.cancel()
        except Exception as e:
            logger.warning("Stopping the recognizer failed: %s", e)
