"""Rule-based phoneme classification from frame features"""

import logging
from dataclasses import dataclass
from typing import Optional

from avatar_engine.models.features import VoiceCharacteristics
from avatar_engine.models.interfaces import PhonemeClassifierStrategy

logger = logging.getLogger(__name__)

SILENCE = "silence"


@dataclass(frozen=True)
class PhonemeThresholds:
    """Decision thresholds of the rule-based classifier

    Attributes:
        silence_energy: Frames with RMS energy below this are silence
        vowel_zcr: Frames with zero-crossing rate below this are vowels
        vowel_centroid_bands: Ascending centroid limits (Hz) for aa, ah, eh;
            anything above the last limit is ih
        consonant_centroid_bands: Descending centroid limits (Hz) for s, sh, t;
            anything at or below the last limit is p
    """
    silence_energy: float = 0.005
    vowel_zcr: float = 0.05
    vowel_centroid_bands: tuple = ((1000.0, "aa"), (1500.0, "ah"), (2000.0, "eh"))
    vowel_fallback: str = "ih"
    consonant_centroid_bands: tuple = ((3000.0, "s"), (2000.0, "sh"), (1000.0, "t"))
    consonant_fallback: str = "p"


class RuleBasedPhonemeClassifier(PhonemeClassifierStrategy):
    """Coarse phoneme labels from energy, zero-crossing rate and centroid"""

    def __init__(self, thresholds: Optional[PhonemeThresholds] = None):
        self.thresholds = thresholds or PhonemeThresholds()

    def classify(self, characteristics: VoiceCharacteristics) -> str:
        t = self.thresholds
        if characteristics.energy < t.silence_energy:
            return SILENCE

        centroid = characteristics.spectral_centroid
        if characteristics.zero_crossing_rate < t.vowel_zcr:
            for limit, label in t.vowel_centroid_bands:
                if centroid < limit:
                    return label
            return t.vowel_fallback

        for limit, label in t.consonant_centroid_bands:
            if centroid > limit:
                return label
        return t.consonant_fallback
