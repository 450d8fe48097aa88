"""
CLI to run a live engagement session for N seconds -> JSON.
"""
from __future__ import annotations
import argparse, json, logging, time
from core.config import Settings
from core.session import EngagementSession

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--seconds", type=float, default=30.0, help="How long to keep the session active")
    p.add_argument("--listening", action="store_true", help="Treat the microphone as active")
    p.add_argument("--out", default="output/session.json", help="Path to output JSON")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    session = EngagementSession(settings)
    session.set_listening(args.listening)
    session.set_active(True)
    try:
        time.sleep(max(0.0, args.seconds))
    except KeyboardInterrupt:
        pass
    finally:
        session.set_active(False)

    summary = session.summary()
    result = {
        "metrics": session.metrics.model_dump(),
        "timeline": [e.model_dump() for e in session.timeline],
        "summary": summary.model_dump() if summary else None,
    }
    print(json.dumps(result, indent=2, ensure_ascii=False))

    # Also write to file
    import os
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    print(f"✅ Session written to {args.out}")

if __name__ == "__main__":
    main()
