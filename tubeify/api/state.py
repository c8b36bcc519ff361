"""Shared application state (injected into routes)."""
from typing import Optional

from tubeify.core.conversion import ConversionOrchestrator
from tubeify.core.recognition import FallbackRecognizer, build_recognizer


class AppState:
    def __init__(self) -> None:
        self._recognizer: Optional[FallbackRecognizer] = None
        self._orchestrator: Optional[ConversionOrchestrator] = None

    @property
    def recognizer(self) -> FallbackRecognizer:
        if self._recognizer is None:
            self._recognizer = build_recognizer()
        return self._recognizer

    @property
    def orchestrator(self) -> ConversionOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = ConversionOrchestrator(recognizer=self.recognizer)
        return self._orchestrator


_state = AppState()


def get_state() -> AppState:
    return _state
