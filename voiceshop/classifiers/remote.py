"""
Remote classifier - classification service client with local fallback
"""
import logging
from typing import Optional

import requests

from ..errors import ClassifierError
from ..intents import Intent, IntentResult
from ..session import REQUEST_PRODUCT_LIMIT, SessionContext
from .base import IntentClassifier
from .local import LocalClassifier

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class RemoteClassifier(IntentClassifier):
    """Classifier backed by the classification service

    The service is authoritative when it answers with a well-formed body.
    Connection errors, timeouts, non-2xx statuses, non-JSON bodies,
    ``success: false`` and unknown intents all defer to ``fallback``.
    On the wire a request is authenticated when it carries ``userId``.
    """

    name = "remote"

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        fallback: Optional[IntentClassifier] = None,
        product_limit: int = REQUEST_PRODUCT_LIMIT,
    ):
        if not url:
            raise ValueError("RemoteClassifier requires a service url")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.fallback = fallback or LocalClassifier()
        self.product_limit = product_limit

    def classify(
        self,
        text: str,
        context: SessionContext,
        authenticated: bool = False,
        user_id: Optional[str] = None,
    ) -> IntentResult:
        try:
            return self.request(text, context, user_id)
        except ClassifierError as e:
            logger.warning("Remote classification unavailable (%s); using %s fallback", e, self.fallback.name)
            return self.fallback.classify(text, context, authenticated=authenticated, user_id=user_id)

    def request(self, text: str, context: SessionContext, user_id: Optional[str] = None) -> IntentResult:
        """
        Call the service once

        Raises:
            ClassifierError: the service gave no usable result
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body = self.format_input(text, context, user_id)
        try:
            response = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise ClassifierError(f"request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ClassifierError(f"request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ClassifierError(f"service returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ClassifierError("service returned a non-JSON body") from e

        if not self.validate_response(payload):
            raise ClassifierError(f"malformed or unsuccessful response: {str(payload)[:100]}")

        result = IntentResult(
            intent=Intent(payload["intent"]),
            response=payload["response"],
            params=dict(payload.get("data") or {}),
        )
        logger.debug("Remote classified %r as %s", text, result.intent.value)
        return result
