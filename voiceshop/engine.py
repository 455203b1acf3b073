"""
Voice command engine - one command cycle at a time.

A cycle is: capture (optional) -> classify -> resolve -> dispatch -> record
-> speak. Entity resolution reads ``engine.context`` after classification
returns, so a product list the host replaced mid-request is the one used.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .cascade import ERROR_RESPONSE
from .classifiers import IntentClassifier, LocalClassifier
from .dispatcher import ActionDispatcher, CapabilityRegistry
from .history import CommandLog
from .intents import Intent, IntentResult
from .resolver import EntityResolver
from .session import ProductSummary, SessionContext

logger = logging.getLogger(__name__)

ACTION_FAILED_RESPONSE = "Sorry, I couldn't complete that right now. Please try again from the page."


class CycleState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


@dataclass
class CommandResult:
    utterance: str
    intent: Intent
    response: str
    params: Dict[str, Any] = field(default_factory=dict)
    capability: Optional[str] = None
    dispatched: bool = False
    product: Optional[ProductSummary] = None

    @property
    def success(self) -> bool:
        return self.intent not in (Intent.ERROR, Intent.ADD_TO_CART_ERROR)


def _unresolved_product_response(result: IntentResult) -> str:
    params = result.params
    if result.intent == Intent.ADD_TO_CART_NAME:
        return (
            f"I couldn't find \"{params.get('product_name', '')}\" in our current products. "
            "Try saying \"Add the first product\" or browse specific products first."
        )
    if result.intent == Intent.ADD_TO_CART_CATEGORY:
        return f"I don't see any {params.get('category', '')} products here. Try \"Show me {params.get('category', '')}\" first."
    if result.intent == Intent.ADD_TO_CART_SIZE:
        return f"None of these products come in size {params.get('size', '')}. Try another size or browse more products."
    if result.intent == Intent.ADD_TO_CART_COLOR:
        return f"I couldn't find a {params.get('color', '')} product here. Try another color or browse more products."
    return (
        "I couldn't find that product. Browse some products first, then say "
        "\"Add the first one\" or \"Add the best rated item\"."
    )


class VoiceCommandEngine:
    """Interprets utterances and drives host capabilities

    Args:
        classifier: RemoteClassifier or LocalClassifier; local by default
        context: live session context the host keeps current
        registry: host capabilities
        resolver: entity resolver; its catalog lookup is optional
        speech_output: SpeechOutputChannel, or None for silent operation
        speech_input: SpeechInputChannel, or None for text-only operation
        command_log: rolling command log
        confirm_actions: replace the spoken response with an apology when the
            capability for a recognized action is missing or fails
    """

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        context: Optional[SessionContext] = None,
        registry: Optional[CapabilityRegistry] = None,
        resolver: Optional[EntityResolver] = None,
        speech_output=None,
        speech_input=None,
        command_log: Optional[CommandLog] = None,
        confirm_actions: bool = False,
    ):
        self.classifier = classifier if classifier is not None else LocalClassifier()
        self.context = context if context is not None else SessionContext()
        self.registry = registry if registry is not None else CapabilityRegistry()
        self.dispatcher = ActionDispatcher(self.registry)
        self.resolver = resolver if resolver is not None else EntityResolver()
        self.speech_output = speech_output
        self.speech_input = speech_input
        self.command_log = command_log if command_log is not None else CommandLog()
        self.confirm_actions = confirm_actions

        self._state = CycleState.IDLE
        self._state_lock = threading.Lock()
        self._cycle_lock = threading.RLock()

    @property
    def state(self) -> CycleState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: CycleState) -> None:
        with self._state_lock:
            if self._state != state:
                logger.debug("Engine state %s -> %s", self._state.value, state.value)
            self._state = state

    def process_command(self, text: str, user_id: Optional[str] = None) -> CommandResult:
        """Classify, resolve, dispatch and record one utterance."""
        with self._cycle_lock:
            self._set_state(CycleState.PROCESSING)
            try:
                return self._process(text, user_id)
            finally:
                self._set_state(CycleState.IDLE)

    def handle_utterance(self, text: str, user_id: Optional[str] = None) -> CommandResult:
        """process_command, then speak the response"""
        with self._cycle_lock:
            result = self.process_command(text, user_id)
            self._speak(result.response)
            return result

    def listen_and_handle(self, user_id: Optional[str] = None) -> CommandResult:
        """
        Capture one utterance and handle it

        Raises:
            SpeechInputError: capture failed, was cancelled or is already active
        """
        if self.speech_input is None:
            raise RuntimeError("No speech input channel configured")
        with self._cycle_lock:
            if self.speech_output is not None:
                self.speech_output.cancel()
            self._set_state(CycleState.LISTENING)
            try:
                text = self.speech_input.start()
            finally:
                self._set_state(CycleState.IDLE)
            return self.handle_utterance(text, user_id)

    def cancel(self) -> None:
        if self.speech_input is not None:
            self.speech_input.stop()
        if self.speech_output is not None:
            self.speech_output.cancel()
        self._set_state(CycleState.IDLE)

    def _speak(self, text: str) -> None:
        if self.speech_output is None or not text:
            return
        self._set_state(CycleState.SPEAKING)
        try:
            self.speech_output.speak(text)
        finally:
            self._set_state(CycleState.IDLE)

    def _process(self, text: str, user_id: Optional[str]) -> CommandResult:
        text = (text or "").strip()
        logger.info("Processing command: %s", text)

        try:
            classified = self.classifier.classify(
                text, self.context, authenticated=user_id is not None, user_id=user_id
            )
        except Exception:
            logger.exception("Classifier %s failed", getattr(self.classifier, "name", "?"))
            classified = IntentResult(Intent.ERROR, ERROR_RESPONSE)

        result = CommandResult(
            utterance=text,
            intent=classified.intent,
            response=classified.response,
            params=dict(classified.params),
            capability=self.dispatcher.capability_for(classified.intent),
        )

        try:
            resolved = self._resolve(classified, result)
        except Exception:
            logger.exception("Could not resolve %s %s", classified.intent.value, classified.params)
            result.intent = Intent.ERROR
            result.response = ERROR_RESPONSE
            result.capability = None
            resolved = False

        if resolved:
            result.dispatched = self.dispatcher.dispatch(result.intent, result.params)
            if self.confirm_actions and result.capability and not result.dispatched:
                result.response = ACTION_FAILED_RESPONSE

        self.command_log.record(text, result.intent.value, result.response, user_id)
        logger.info("Command result: intent=%s dispatched=%s", result.intent.value, result.dispatched)
        return result

    def _resolve(self, classified: IntentResult, result: CommandResult) -> bool:
        """Fill concrete targets into ``result``; False means do not dispatch."""
        intent = classified.intent

        if intent.adds_to_cart:
            product = self.resolver.resolve_product(classified, self.context)
            if product is None:
                logger.info("No product matched %s %s", intent.value, classified.params)
                result.intent = Intent.ADD_TO_CART_ERROR
                result.response = _unresolved_product_response(classified)
                result.capability = None
                return False
            result.product = product
            result.params["product_id"] = product.id
            return True

        if intent == Intent.ADDRESS_SELECTED and self.context.addresses:
            identifier = str(result.params.get("address_identifier", ""))
            option = self.resolver.resolve_address(identifier, self.context)
            if option is None:
                result.response = (
                    f"I couldn't find address {identifier}. You have "
                    f"{len(self.context.addresses)} saved addresses; try \"Use address 1\"."
                )
                return False
            result.params["address_identifier"] = option.id
            return True

        if intent == Intent.CARD_SELECTED and self.context.cards:
            identifier = str(result.params.get("card_identifier", ""))
            option = self.resolver.resolve_card(identifier, self.context)
            if option is None:
                result.response = (
                    f"I couldn't find card {identifier}. You have "
                    f"{len(self.context.cards)} saved cards; try \"Use card 1\"."
                )
                return False
            result.params["card_identifier"] = option.id
            return True

        return True
