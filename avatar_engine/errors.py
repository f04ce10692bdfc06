"""Error types raised by the analysis pipeline"""

import threading
from typing import Optional


class AnalysisError(Exception):
    """Base class for all pipeline errors"""
    pass


class InvalidInputError(AnalysisError):
    """Raised for empty or malformed buffers and non-positive frame sizes"""
    pass


class UnsupportedConfigError(AnalysisError):
    """Raised when a configuration cannot be honoured

    Examples are a non-power-of-two FFT size or asking for more cepstral
    coefficients than there are mel filters.
    """
    pass


class ComputationError(AnalysisError):
    """Raised when a numeric step produces NaN or infinite output"""
    pass


class AnalysisCancelledError(AnalysisError):
    """Raised when a cooperative cancellation signal stops an analysis"""
    pass


class SessionNotFoundError(AnalysisError, KeyError):
    """Raised when a session id is not registered"""
    pass


def raise_if_cancelled(cancel_event: Optional[threading.Event], where: str = "analysis") -> None:
    """Abort the current analysis if the caller has set the cancel event."""
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelledError(f"{where} cancelled")
