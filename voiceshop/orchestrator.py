"""Classification service request handler.

The entry point is :func:`process_request`, which expects a single dictionary
payload that mirrors the JSON contract exchanged with the assistant client:
``{action, text, userId?, context?}``. Command classification evaluates the
same rule table as the in-process classifier. A small CLI wrapper is provided
so the handler can be used from scripts or manual tests by piping JSON through
standard input.
"""

from __future__ import annotations

import json
import logging
import os
import random
import sys
from typing import Any, Dict, Optional

from . import cascade
from .audio.elevenlabs import ElevenLabsSynthesizer
from .errors import SynthesisError, SynthesisUnavailable
from .intents import Intent
from .session import SessionContext

logger = logging.getLogger(__name__)

PROCESS_COMMAND = "process-command"
TEXT_TO_SPEECH = "text-to-speech"
SUPPORTED_ACTIONS = {PROCESS_COMMAND, TEXT_TO_SPEECH}


def _error_response(message: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "intent": Intent.ERROR.value,
        "response": cascade.ERROR_RESPONSE,
    }


def _default_synthesizer() -> ElevenLabsSynthesizer:
    return ElevenLabsSynthesizer(api_key=os.environ.get("ELEVENLABS_API_KEY"))


def process_request(
    payload: Dict[str, Any],
    synthesizer: Optional[Any] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Process a single service request."""

    if not isinstance(payload, dict):
        return _error_response("Request body must be a JSON object")

    action = payload.get("action")
    text = (payload.get("text") or "").strip()
    logger.info("Voice assistant request: action=%s user=%s", action, payload.get("userId"))

    if action not in SUPPORTED_ACTIONS:
        return _error_response("Invalid action specified")

    if action == TEXT_TO_SPEECH:
        if not text:
            return _error_response("Text required for text-to-speech")
        return _handle_text_to_speech(text, synthesizer or _default_synthesizer())

    if not text:
        return _error_response("Text required for command processing")
    return _handle_command(text, payload, rng)


def _handle_command(text: str, payload: Dict[str, Any], rng: Optional[random.Random]) -> Dict[str, Any]:
    context = payload.get("context")
    if context is not None and not isinstance(context, dict):
        return _error_response("context must be an object")
    try:
        session = SessionContext.from_request_context(context)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        return _error_response(f"Invalid context: {exc}")

    result = cascade.classify(text, session, authenticated=bool(payload.get("userId")), rng=rng)
    if result.intent == Intent.ERROR:
        return _error_response("Command classification failed")
    logger.info("Command processing result: %s", result.intent.value)
    return result.to_payload()


def _handle_text_to_speech(text: str, synthesizer: Any) -> Dict[str, Any]:
    try:
        audio = synthesizer.synthesize(text)
    except SynthesisUnavailable as exc:
        logger.info("Text-to-speech unavailable: %s", exc)
        return {"success": True, "audio": None, "message": f"{exc}, using local speech"}
    except SynthesisError as exc:
        logger.error("Text-to-speech error: %s", exc)
        return {"success": True, "audio": None, "message": f"Synthesis error: {exc}"}
    return audio.to_payload()


def main() -> int:
    if sys.stdin.isatty():
        print("Expecting a JSON request on standard input.", file=sys.stderr)
        return 1
    try:
        payload = json.load(sys.stdin)
    except json.JSONDecodeError as exc:
        print(f"Could not read JSON: {exc}", file=sys.stderr)
        return 2

    result_dict = process_request(payload)
    json.dump(result_dict, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
