# backend/salon_booking/services/executors.py
"""
Dedicated thread pool for best-effort booking side effects.

Side effects (booking log writes) are queued here so a slow log sink never
ties up the request thread.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import os

from ..core.constants import SIDE_EFFECT_MAX_WORKERS

logger = logging.getLogger(__name__)

SIDE_EFFECT_WORKERS = int(os.getenv("SIDE_EFFECT_MAX_WORKERS", str(SIDE_EFFECT_MAX_WORKERS)))

SIDE_EFFECT_EXECUTOR = ThreadPoolExecutor(
    max_workers=SIDE_EFFECT_WORKERS,
    thread_name_prefix="booking-side-effects",
)

logger.info(f"[EXECUTORS] Created side-effect executor with {SIDE_EFFECT_WORKERS} workers")
