import base64
import threading

import cv2
import numpy as np
import pytest
import requests

import core.remote as remote
from core.models import RemoteEstimate
from core.remote import MalformedEstimate, RemoteEstimator, encode_frame, extract_json_object, parse_estimate

GOOD = {
    "eyeContact": 81, "confidence": 72, "engagement": 64, "stress": 12,
    "positivity": 77, "professionalPresence": 69, "dominantEmotion": "confident",
    "microExpressions": "slight smile",
}


class ScriptedScorer:
    """Returns / raises the queued outcomes in order."""
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.frames = []
    def score(self, frame_b64):
        self.frames.append(frame_b64)
        out = self.outcomes.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


class BlockingScorer:
    def __init__(self, result):
        self.result = result
        self.entered = threading.Event()
        self.release = threading.Event()
    def score(self, frame_b64):
        self.entered.set()
        self.release.wait(5)
        return self.result


def test_encode_frame_downscales_to_snapshot_size(frame):
    b64 = encode_frame(frame, (320, 240), 0.6)
    img = cv2.imdecode(np.frombuffer(base64.b64decode(b64), np.uint8), cv2.IMREAD_COLOR)
    assert img.shape[1] <= 320 and img.shape[0] <= 240
    assert encode_frame(None) is None


def test_extract_json_object_from_fenced_reply():
    text = "```json\n" + '{"eyeContact": 10, "dominantEmotion": "focused"}' + "\n```"
    assert extract_json_object(text)["eyeContact"] == 10
    with pytest.raises(MalformedEstimate):
        extract_json_object("no json here")


def test_parse_estimate_accepts_wrapped_payload():
    est = parse_estimate({"emotionData": GOOD})
    assert est.eye_contact == 81 and est.professional_presence == 69
    assert est.micro_expressions == "slight smile"


@pytest.mark.parametrize("payload", [
    {k: v for k, v in GOOD.items() if k != "stress"},
    {**GOOD, "confidence": "very"},
    {**GOOD, "engagement": 250},
    {**GOOD, "confidence": True},
    {**GOOD, "eyeContact": False},
    {**GOOD, "stress": "12"},
    {**GOOD, "dominantEmotion": "sleepy"},
    ["not", "an", "object"],
])
def test_parse_estimate_rejects_malformed(payload):
    with pytest.raises(MalformedEstimate):
        parse_estimate(payload)


def test_remote_failures_keep_last_success(frame):
    first = parse_estimate(GOOD)
    scorer = ScriptedScorer(
        first,
        requests.ConnectionError("offline"),
        requests.Timeout("slow"),
        MalformedEstimate("missing fields: stress"),
        requests.HTTPError("500"),
        ValueError("unexpected"),
    )
    r = RemoteEstimator(scorer)
    assert r.refresh(frame) is True
    for _ in range(5):
        assert r.refresh(frame) is False
    assert r.estimate == first
    assert r.failures == 5


def test_remote_no_frame_keeps_default():
    scorer = ScriptedScorer()
    r = RemoteEstimator(scorer)
    assert r.refresh(None) is False
    assert r.estimate == RemoteEstimate()
    assert scorer.frames == []


def test_remote_skips_while_request_in_flight(frame):
    scorer = BlockingScorer(parse_estimate(GOOD))
    r = RemoteEstimator(scorer)
    t = r.refresh_async(frame)
    assert scorer.entered.wait(5)
    assert r.busy
    assert r.refresh(frame) is False
    assert r.refresh_async(frame) is None
    scorer.release.set()
    t.join(5)
    assert r.estimate.dominant_emotion == "confident"


def test_remote_result_dropped_after_close(frame):
    scorer = BlockingScorer(parse_estimate(GOOD))
    r = RemoteEstimator(scorer)
    t = r.refresh_async(frame)
    assert scorer.entered.wait(5)
    r.close()
    scorer.release.set()
    t.join(5)
    assert r.estimate == RemoteEstimate()


def test_scorer_posts_frame(monkeypatch):
    sent = {}

    class Resp:
        def raise_for_status(self): pass
        def json(self): return {"emotionData": GOOD}

    class Sess:
        def post(self, url, json=None, headers=None, timeout=None):
            sent.update(url=url, json=json, headers=headers, timeout=timeout)
            return Resp()

    s = remote.RemoteScorer("http://scorer.local/hr-interview", api_key="k", timeout=3, session=Sess())
    est = s.score("AAAA")
    assert est.stress == 12
    assert sent["json"] == {"action": "analyze_emotion", "frameBase64": "AAAA"}
    assert sent["headers"]["Authorization"] == "Bearer k"
    assert sent["timeout"] == 3


def test_boolean_scores_do_not_replace_estimate(frame):
    class PayloadScorer:
        def __init__(self, *payloads):
            self.payloads = list(payloads)
        def score(self, frame_b64):
            return parse_estimate(self.payloads.pop(0))

    r = RemoteEstimator(PayloadScorer(GOOD, {**GOOD, "eyeContact": True, "confidence": False}))
    assert r.refresh(frame) is True
    first = r.estimate
    assert r.refresh(frame) is False
    assert r.estimate == first
    assert r.estimate.confidence == 72
