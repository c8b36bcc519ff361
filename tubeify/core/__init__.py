"""Core services: recognition, Spotify, conversion pipeline."""
from tubeify.core.conversion import ConversionOrchestrator
from tubeify.core.recognition import FallbackRecognizer, build_recognizer

__all__ = ["ConversionOrchestrator", "FallbackRecognizer", "build_recognizer"]
