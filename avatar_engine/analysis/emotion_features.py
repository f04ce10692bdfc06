"""EmotionFeatureExtractor: one entry point for textual, acoustic and contextual features"""

import logging
import threading
from typing import Any, Mapping, Optional, Union

from avatar_engine.analysis.acoustic import AcousticAnalyzer
from avatar_engine.analysis.contextual import ContextualFeatureExtractor
from avatar_engine.analysis.linguistic import TextualFeatureExtractor
from avatar_engine.errors import InvalidInputError
from avatar_engine.models.features import (
    AcousticEmotionFeatures,
    ContextualFeatures,
    EmotionFeatures,
    TextualFeatures,
    VoiceCharacteristics,
)
from avatar_engine.models.frames import AudioBufferDescriptor

logger = logging.getLogger(__name__)

AudioInput = Union[AudioBufferDescriptor, VoiceCharacteristics, AcousticEmotionFeatures, Mapping[str, Any]]
ContextInput = Union[ContextualFeatures, Mapping[str, Any]]


class EmotionFeatureExtractor:
    """Builds EmotionFeatures from whichever modalities the caller supplies"""

    def __init__(
        self,
        acoustic: Optional[AcousticAnalyzer] = None,
        textual: Optional[TextualFeatureExtractor] = None,
        contextual: Optional[ContextualFeatureExtractor] = None,
    ):
        self.acoustic = acoustic or AcousticAnalyzer()
        self.textual = textual or TextualFeatureExtractor()
        self.contextual = contextual or ContextualFeatureExtractor()

    def extract_textual(self, text: str) -> TextualFeatures:
        return self.textual.extract(text)

    def extract_acoustic(
        self,
        audio: AudioInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> AcousticEmotionFeatures:
        """Acoustic emotion features from a buffer, voice characteristics or a mapping

        A full buffer gives every feature; the other inputs carry only what
        they already contain.
        """
        if isinstance(audio, AcousticEmotionFeatures):
            return audio
        if isinstance(audio, AudioBufferDescriptor):
            _, features, _ = self.acoustic.extract(audio, cancel_event)
            return features
        if isinstance(audio, VoiceCharacteristics):
            return AcousticAnalyzer.from_voice(audio)
        if isinstance(audio, Mapping):
            try:
                return AcousticEmotionFeatures.from_dict(audio)
            except (TypeError, ValueError, AssertionError) as e:
                raise InvalidInputError(f"Malformed acoustic features: {e}")
        raise InvalidInputError(f"Unsupported audio input type: {type(audio).__name__}")

    def extract_contextual(self, context: ContextInput) -> ContextualFeatures:
        return self.contextual.extract(context)

    def extract(
        self,
        text: Optional[str] = None,
        audio: Optional[AudioInput] = None,
        context: Optional[ContextInput] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EmotionFeatures:
        """Extract every supplied modality; absent ones stay None"""
        features = EmotionFeatures(
            textual=self.extract_textual(text) if text is not None else None,
            acoustic=self.extract_acoustic(audio, cancel_event) if audio is not None else None,
            contextual=self.extract_contextual(context) if context is not None else None,
        )
        logger.debug(
            f"Extracted emotion features: text={features.textual is not None}, "
            f"audio={features.acoustic is not None}, context={features.contextual is not None}"
        )
        return features
