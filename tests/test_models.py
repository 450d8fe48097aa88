import pytest
from pydantic import ValidationError

from core.models import MetricsSnapshot, RemoteEstimate, SessionStatus

def test_models():
    m = MetricsSnapshot(eye_contact=140, stress=-3, dominant_emotion="")
    assert m.eye_contact == 100 and m.stress == 0
    assert m.dominant_emotion == "neutral"
    m.posture = 250
    assert m.posture == 100
    st = SessionStatus(active=False, listening=False, metrics=m)
    assert st.metrics.eye_contact == 100

def test_snapshot_rejects_nan():
    with pytest.raises(ValidationError):
        MetricsSnapshot(confidence=float("nan"))

def test_remote_defaults_and_wire_names():
    d = RemoteEstimate()
    assert (d.eye_contact, d.confidence, d.engagement, d.stress, d.positivity, d.professional_presence) == (50, 50, 50, 30, 50, 50)
    assert d.dominant_emotion == "neutral"
    r = RemoteEstimate.model_validate({"eyeContact": 70, "professionalPresence": 60, "dominantEmotion": "Happy"})
    assert r.eye_contact == 70 and r.professional_presence == 60
    assert r.dominant_emotion == "happy"

def test_remote_rejects_unknown_emotion():
    with pytest.raises(ValidationError):
        RemoteEstimate.model_validate({"dominantEmotion": "bored"})
