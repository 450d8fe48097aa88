"""Run live camera overlay with the smoothed engagement metrics.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Press 'q' to quit the window.
"""
import logging
from core.config import Settings
from core.live import run_live_overlay

if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=s.LOG_LEVEL)
    run_live_overlay(s)
