"""
Audio player for synthesized speech.
Supports interruptible playback with stop events.
"""
import base64
import binascii
import io
import logging
import threading
import wave
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..errors import SynthesisError, SynthesisUnavailable

logger = logging.getLogger(__name__)

PCM_CONTENT_TYPES = ("audio/pcm", "audio/l16")
WAV_CONTENT_TYPES = ("audio/wav", "audio/x-wav", "audio/wave")


@dataclass
class SynthesizedAudio:
    """Decoded synthesis payload"""

    data: bytes
    content_type: str
    sample_rate: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SynthesizedAudio":
        """
        Build from a ``{success, audio, contentType, sampleRate}`` response body

        Raises:
            SynthesisUnavailable: ``audio`` is null
            SynthesisError: the body is malformed
        """
        if not isinstance(payload, dict) or not payload.get("success"):
            raise SynthesisError(f"synthesis failed: {str(payload)[:100]}")
        audio = payload.get("audio")
        if audio is None:
            raise SynthesisUnavailable(payload.get("message") or "synthesis provider returned no audio")
        if not isinstance(audio, str):
            raise SynthesisError("audio field is not a base64 string")
        try:
            data = base64.b64decode(audio, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SynthesisError("audio field is not valid base64") from e
        if not data:
            raise SynthesisError("synthesis returned empty audio")

        rate = payload.get("sampleRate")
        return cls(
            data=data,
            content_type=str(payload.get("contentType") or "").split(";")[0].strip().lower(),
            sample_rate=int(rate) if rate else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "audio": base64.b64encode(self.data).decode("ascii"),
            "contentType": self.content_type,
            "sampleRate": self.sample_rate,
        }

    def to_samples(self) -> Tuple[np.ndarray, int, int]:
        """
        Decode to float32 samples in [-1.0, 1.0]

        Returns:
            (samples, sample_rate, channels)
        """
        if self.content_type in PCM_CONTENT_TYPES:
            if not self.sample_rate:
                raise SynthesisError("PCM audio requires a sample rate")
            samples = np.frombuffer(self.data[: len(self.data) - len(self.data) % 2], dtype="<i2")
            return samples.astype(np.float32) / 32768.0, self.sample_rate, 1

        if self.content_type in WAV_CONTENT_TYPES:
            try:
                with wave.open(io.BytesIO(self.data), "rb") as wf:
                    sample_rate = wf.getframerate()
                    channels = wf.getnchannels()
                    sample_width = wf.getsampwidth()
                    frames = wf.readframes(wf.getnframes())
            except (wave.Error, EOFError) as e:
                raise SynthesisError(f"invalid WAV data: {e}") from e

            if sample_width != 2:
                raise SynthesisError(f"unsupported sample width: {sample_width}")
            samples = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
            if channels > 1:
                samples = samples.reshape(-1, channels)
            return samples, sample_rate, channels

        raise SynthesisError(f"unsupported content type: {self.content_type or 'none'}")


class AudioPlayer:
    """Interruptible audio player"""

    def __init__(self, device: Optional[int] = None, chunk_seconds: float = 0.05):
        """
        Args:
            device: Optional sounddevice output device index
            chunk_seconds: Write granularity; bounds how late a stop is noticed
        """
        self.device = device
        self.chunk_seconds = chunk_seconds
        self.current_stream = None
        self.stream_lock = threading.Lock()

    def play(self, audio: SynthesizedAudio, stop_event: threading.Event) -> bool:
        """
        Play decoded audio in chunks, checking ``stop_event`` between writes

        Returns:
            True if played to completion, False if interrupted

        Raises:
            SynthesisError: the audio could not be decoded
        """
        import sounddevice as sd

        samples, sample_rate, channels = audio.to_samples()
        chunk_size = max(1, int(sample_rate * self.chunk_seconds))
        total = len(samples)
        position = 0

        with self.stream_lock:
            if stop_event.is_set():
                return False
            self.current_stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype="float32",
                device=self.device,
            )
            self.current_stream.start()

        try:
            while position < total:
                if stop_event.is_set():
                    logger.debug("Audio playback interrupted")
                    return False
                end = min(position + chunk_size, total)
                stream = self.current_stream
                if stream is None:
                    return False
                stream.write(samples[position:end])
                position = end

            logger.debug("Audio playback completed")
            return True
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop current playback immediately"""
        with self.stream_lock:
            stream, self.current_stream = self.current_stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                logger.debug("Closing output stream failed: %s", e)
