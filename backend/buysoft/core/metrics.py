"""
In-process counters for login, captcha, upload and click activity.
"""

from __future__ import annotations

import threading

COUNTERS = (
    "login_success_total",
    "login_failure_total",
    "account_lockouts_total",
    "captcha_rejections_total",
    "captchas_issued_total",
    "image_uploads_total",
    "product_clicks_total",
)


class MetricsRegistry:
    """Thread-safe counter registry; unknown names start at zero."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = dict.fromkeys(COUNTERS, 0.0)

    def increment(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + amount

    def snapshot(self) -> dict[str, dict[str, float]]:
        with self._lock:
            return {"counters": dict(self._counters)}

    def reset(self) -> None:
        with self._lock:
            self._counters = dict.fromkeys(COUNTERS, 0.0)


metrics = MetricsRegistry()
