"""Viseme mapping and lip-sync sequence generation

Turns per-frame voice characteristics into a time-aligned sequence of mouth
shapes for an animation player. Each non-overlapping frame of
``viseme_granularity_ms`` is classified into a coarse phoneme, mapped to a
viseme and then smoothed against its neighbours so single low-confidence
flickers do not reach the face rig.
"""

import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np

from avatar_engine.analysis.phoneme import RuleBasedPhonemeClassifier
from avatar_engine.analysis.voice import VoiceCharacterizer
from avatar_engine.errors import InvalidInputError, raise_if_cancelled
from avatar_engine.models.features import VoiceCharacteristics
from avatar_engine.models.frames import AudioBufferDescriptor
from avatar_engine.models.interfaces import PhonemeClassifierStrategy
from avatar_engine.models.results import Viseme

logger = logging.getLogger(__name__)


SILENT_VISEME = "sil"

PHONEME_TO_VISEME: Dict[str, str] = {
    "silence": "sil",
    # Bilabials
    "p": "p", "b": "p", "m": "p",
    # Labiodentals
    "f": "f", "v": "f",
    # Dentals
    "th": "th", "dh": "th",
    # Alveolars
    "t": "t", "d": "t", "n": "t", "l": "t", "s": "t", "z": "t",
    # Post-alveolars
    "sh": "sh", "zh": "sh", "ch": "sh", "jh": "sh",
    # Velars
    "k": "k", "g": "k", "ng": "k",
    "r": "r",
    # Vowels
    "aa": "aa", "ao": "aa",
    "ah": "ah", "ax": "ah", "ay": "ah",
    "ae": "ae",
    "eh": "eh", "ey": "eh",
    "ih": "ih", "iy": "ih",
    "ow": "ow", "oy": "ow",
    "uh": "uh", "uw": "uh",
    "er": "er",
}


class VisemeMapper:
    """Generates and smooths viseme sequences

    Attributes:
        characterizer: Per-frame voice analysis
        classifier: Phoneme strategy, rule-based by default
        smoothing_threshold: Isolated visemes below this confidence are replaced
        confidence_scale: Energy multiplier for viseme confidence
        intensity_scale: Energy multiplier for mouth intensity
    """

    def __init__(
        self,
        characterizer: Optional[VoiceCharacterizer] = None,
        classifier: Optional[PhonemeClassifierStrategy] = None,
        smoothing_threshold: Optional[float] = None,
        confidence_scale: float = 5.0,
        intensity_scale: float = 10.0,
    ):
        self.characterizer = characterizer or VoiceCharacterizer()
        self.classifier = classifier or RuleBasedPhonemeClassifier()
        if smoothing_threshold is None:
            smoothing_threshold = self.characterizer.config.viseme_smoothing_threshold
        self.smoothing_threshold = smoothing_threshold
        self.confidence_scale = confidence_scale
        self.intensity_scale = intensity_scale

    @staticmethod
    def map_phoneme(phoneme: str) -> str:
        """Viseme for a phoneme label; unknown labels map to silence"""
        return PHONEME_TO_VISEME.get(phoneme, SILENT_VISEME)

    def viseme_for(self, characteristics: VoiceCharacteristics, duration_ms: float) -> Viseme:
        """Classify one frame and build its viseme"""
        phoneme = self.classifier.classify(characteristics)
        energy = characteristics.energy
        return Viseme(
            label=self.map_phoneme(phoneme),
            confidence=float(min(1.0, energy * self.confidence_scale)),
            duration_ms=duration_ms,
            intensity=float(min(1.0, energy * self.intensity_scale)),
        )

    def iter_raw(
        self,
        buffer: AudioBufferDescriptor,
        granularity_ms: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Viseme]:
        """Unsmoothed visemes, one per frame of ``granularity_ms``

        The last frame may be shorter; it keeps its real duration so the
        sequence covers the buffer exactly.
        """
        if granularity_ms is None:
            granularity_ms = self.characterizer.config.viseme_granularity_ms
        if granularity_ms <= 0:
            raise InvalidInputError(f"Granularity must be positive, got {granularity_ms}")

        sample_rate = buffer.sample_rate
        frame_size = max(1, int(sample_rate * granularity_ms / 1000.0))
        samples = buffer.samples
        for start in range(0, len(samples), frame_size):
            raise_if_cancelled(cancel_event, "lip sync")
            frame = samples[start:start + frame_size]
            characteristics = self.characterizer.characterize_frame(frame, sample_rate)
            yield self.viseme_for(characteristics, len(frame) / sample_rate * 1000.0)

    def _needs_smoothing(self, prev: Viseme, curr: Viseme, nxt: Viseme) -> bool:
        return (
            curr.label != prev.label
            and curr.label != nxt.label
            and curr.confidence < self.smoothing_threshold
        )

    def _smoothed(self, prev: Viseme, curr: Viseme, nxt: Viseme) -> Viseme:
        if not self._needs_smoothing(prev, curr, nxt):
            return curr
        source = prev if prev.confidence > nxt.confidence else nxt
        return Viseme(
            label=source.label,
            confidence=source.confidence,
            duration_ms=curr.duration_ms,
            intensity=curr.intensity,
        )

    def iter_smoothed(self, visemes: Iterable[Viseme]) -> Iterator[Viseme]:
        """Smooth a stream with one frame of lookahead

        The previous neighbour is the already smoothed frame and the next
        one is unsmoothed input, so a second pass changes nothing. Each
        viseme is yielded as soon as its successor is known.
        """
        iterator = iter(visemes)
        prev = None
        curr = next(iterator, None)
        if curr is None:
            return
        for nxt in iterator:
            emitted = curr if prev is None else self._smoothed(prev, curr, nxt)
            yield emitted
            prev, curr = emitted, nxt
        yield curr

    def smooth(self, visemes: List[Viseme]) -> List[Viseme]:
        """Single smoothing pass over a complete sequence; the input is not modified"""
        return list(self.iter_smoothed(visemes))

    def generate(
        self,
        buffer: AudioBufferDescriptor,
        granularity_ms: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Viseme]:
        """Smoothed lip-sync sequence for a whole buffer"""
        visemes = self.smooth(list(self.iter_raw(buffer, granularity_ms, cancel_event)))
        total_ms = float(np.sum([v.duration_ms for v in visemes]))
        logger.debug(f"Generated {len(visemes)} visemes covering {total_ms:.1f}ms")
        return visemes

    def stream(
        self,
        buffer: AudioBufferDescriptor,
        granularity_ms: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Viseme]:
        """Smoothed visemes yielded frame by frame, one frame behind analysis"""
        return self.iter_smoothed(self.iter_raw(buffer, granularity_ms, cancel_event))
