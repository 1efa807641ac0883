"""Endpoint APIs bound to a ready client's transport."""

from .chat import ChatAPI
from .completion import CompletionAPI
from .models import ModelsAPI
from .structured import StructuredAPI
from .web_search import WebSearchAPI

__all__ = [
    "ChatAPI",
    "CompletionAPI",
    "ModelsAPI",
    "StructuredAPI",
    "WebSearchAPI",
]
