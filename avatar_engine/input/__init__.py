"""Session management"""

from avatar_engine.input.session_manager import Session, SessionRegistry

__all__ = ["Session", "SessionRegistry"]
