"""
Exception hierarchy for the voice shop assistant
"""


class VoiceShopError(Exception):
    """Base class for all assistant errors"""


class ConfigError(VoiceShopError, ValueError):
    """Invalid or incomplete configuration"""


class ClassifierError(VoiceShopError):
    """Remote classification could not produce a usable result"""


class SynthesisError(VoiceShopError):
    """A speech synthesis provider failed"""


class SynthesisUnavailable(SynthesisError):
    """The provider answered but has no audio (not configured)"""


class SpeechInputError(VoiceShopError):
    """Base class for speech capture failures surfaced to the caller"""


class AlreadyListeningError(SpeechInputError):
    """A listening session is already active"""


class SpeechRecognitionError(SpeechInputError):
    """The recognizer failed or heard nothing"""


class ListeningCancelledError(SpeechInputError):
    """The listening session was stopped before a transcript arrived"""
