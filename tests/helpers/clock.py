from __future__ import annotations

import datetime as dt


class FakeClock:
    """Deterministic stand-in for the store's clock; time moves only on `advance`."""

    def __init__(self, start: dt.datetime | None = None) -> None:
        self.now = start or dt.datetime(2024, 3, 1, 12, 0, tzinfo=dt.UTC)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **delta: float) -> dt.datetime:
        self.now = self.now + dt.timedelta(**delta)
        return self.now


__all__ = ["FakeClock"]
