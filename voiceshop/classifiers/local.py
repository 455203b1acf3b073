"""
In-process classifier over the shared rule table
"""
import random
from typing import List, Optional

from .. import cascade
from ..intents import IntentResult
from ..session import SessionContext
from .base import IntentClassifier


class LocalClassifier(IntentClassifier):
    """Evaluates the intent rule table synchronously; never fails."""

    name = "local"

    def __init__(self, rng: Optional[random.Random] = None, rules: Optional[List[cascade.Rule]] = None):
        self.rng = rng
        self.rules = rules

    def classify(
        self,
        text: str,
        context: SessionContext,
        authenticated: bool = False,
        user_id: Optional[str] = None,
    ) -> IntentResult:
        return cascade.classify(text, context, authenticated=authenticated, rng=self.rng, rules=self.rules)
