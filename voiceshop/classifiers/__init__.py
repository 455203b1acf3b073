"""
Classifiers module
"""
from .base import IntentClassifier
from .local import LocalClassifier
from .remote import RemoteClassifier

__all__ = ['IntentClassifier', 'LocalClassifier', 'RemoteClassifier']
