# src/tessbridge/engine/__init__.py
from .base import RecognitionEngine, get_engine

__all__ = ["RecognitionEngine", "get_engine"]
