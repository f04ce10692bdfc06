"""Property-based tests for viseme smoothing

Feature: avatar-analysis-engine, Property: Smoothing preserves timing

Smoothing never changes the number of visemes or their durations and
intensities, never touches the first and last viseme, and only ever copies
a label from an immediate neighbour.
"""

from hypothesis import given, strategies as st, settings

from avatar_engine.analysis.viseme import VisemeMapper
from avatar_engine.models.results import Viseme

LABELS = ["sil", "p", "f", "t", "sh", "aa", "ih"]


@st.composite
def viseme_strategy(draw):
    return Viseme(
        label=draw(st.sampled_from(LABELS)),
        confidence=draw(st.floats(min_value=0.0, max_value=1.0)),
        duration_ms=draw(st.floats(min_value=0.0, max_value=100.0)),
        intensity=draw(st.floats(min_value=0.0, max_value=1.0)),
    )


@given(visemes=st.lists(viseme_strategy(), max_size=30))
@settings(max_examples=100, deadline=None)
def test_smoothing_preserves_timing(visemes):
    """
    Property: Length, durations and intensities are unchanged.
    """
    smoothed = VisemeMapper().smooth(visemes)

    assert len(smoothed) == len(visemes)
    assert [v.duration_ms for v in smoothed] == [v.duration_ms for v in visemes]
    assert [v.intensity for v in smoothed] == [v.intensity for v in visemes]


@given(visemes=st.lists(viseme_strategy(), min_size=1, max_size=30))
@settings(max_examples=100, deadline=None)
def test_labels_come_from_neighbours(visemes):
    """
    Property: Edges are kept and each label is its own, the smoothed
    previous one or the next input one.
    """
    smoothed = VisemeMapper().smooth(visemes)

    assert smoothed[0] == visemes[0]
    assert smoothed[-1] == visemes[-1]
    for i in range(1, len(visemes) - 1):
        assert smoothed[i].label in {smoothed[i - 1].label, visemes[i].label, visemes[i + 1].label}


@given(visemes=st.lists(viseme_strategy(), max_size=30))
@settings(max_examples=200, deadline=None)
def test_smoothing_is_idempotent(visemes):
    """
    Property: Smoothing a smoothed sequence changes nothing.
    """
    mapper = VisemeMapper()
    once = mapper.smooth(visemes)

    assert mapper.smooth(once) == once
