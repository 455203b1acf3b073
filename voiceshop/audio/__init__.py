"""
Audio module - speech capture, synthesis and playback
"""
from .elevenlabs import ElevenLabsSynthesizer
from .player import AudioPlayer, SynthesizedAudio
from .stt import SpeechInputChannel, SpeechToText
from .tts import LocalSpeechEngine, RemoteSynthesizer, SpeechOutputChannel

__all__ = [
    'AudioPlayer',
    'ElevenLabsSynthesizer',
    'LocalSpeechEngine',
    'RemoteSynthesizer',
    'SpeechInputChannel',
    'SpeechOutputChannel',
    'SpeechToText',
    'SynthesizedAudio',
]
