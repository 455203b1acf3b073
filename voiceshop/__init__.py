"""
Voice shop assistant - spoken command interpretation and action dispatch
"""
from .dispatcher import ActionDispatcher, CapabilityRegistry
from .engine import CommandResult, CycleState, VoiceCommandEngine
from .history import CommandHistoryEntry, CommandLog
from .intents import Intent, IntentResult
from .resolver import EntityResolver
from .session import Page, ProductSummary, SavedOption, SessionContext

__version__ = "0.1.0"

__all__ = [
    'ActionDispatcher',
    'CapabilityRegistry',
    'CommandHistoryEntry',
    'CommandLog',
    'CommandResult',
    'CycleState',
    'EntityResolver',
    'Intent',
    'IntentResult',
    'Page',
    'ProductSummary',
    'SavedOption',
    'SessionContext',
    'VoiceCommandEngine',
]
