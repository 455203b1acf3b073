"""
Base class for intent classifiers
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..intents import Intent, IntentResult
from ..session import REQUEST_PRODUCT_LIMIT, SessionContext

TEXT_PARAMS = (
    "product_name", "category", "size", "color", "criteria",
    "card_identifier", "address_identifier",
)


class IntentClassifier(ABC):
    """Abstract base class for intent classifiers"""

    name = "base"
    product_limit = REQUEST_PRODUCT_LIMIT

    @abstractmethod
    def classify(
        self,
        text: str,
        context: SessionContext,
        authenticated: bool = False,
        user_id: Optional[str] = None,
    ) -> IntentResult:
        """
        Classify one utterance

        Args:
            text: Recognized utterance
            context: Live session context
            authenticated: Whether a user is signed in
            user_id: Signed-in user id, if any

        Returns:
            IntentResult; implementations never raise for bad input
        """
        pass

    def format_input(self, text: str, context: SessionContext, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the request body for a classification service

        Args:
            text: Recognized utterance
            context: Session context to summarize
            user_id: Signed-in user id, if any

        Returns:
            JSON-serializable request body
        """
        body: Dict[str, Any] = {
            "action": "process-command",
            "text": text,
            "context": context.to_request_context(self.product_limit),
        }
        if user_id:
            body["userId"] = user_id
        return body

    def validate_response(self, response: Any) -> bool:
        """
        Check a classification service response has the expected shape

        Args:
            response: Decoded JSON body

        Returns:
            True if the body can be turned into an IntentResult
        """
        if not isinstance(response, dict) or response.get("success") is not True:
            return False
        if not isinstance(response.get("response"), str):
            return False
        data = response.get("data")
        if data is not None and not isinstance(data, dict):
            return False
        if data and not self._valid_params(data):
            return False
        return Intent.parse(str(response.get("intent", ""))) is not None

    @staticmethod
    def _valid_params(data: Dict[str, Any]) -> bool:
        position = data.get("position")
        if "position" in data and (not isinstance(position, int) or isinstance(position, bool)):
            return False
        for key in TEXT_PARAMS:
            if key in data and not isinstance(data[key], str):
                return False
        return True
