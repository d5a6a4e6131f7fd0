from __future__ import annotations

from collections.abc import Sequence

from llmfailover.models import FallbackAttempt


class AllProvidersFailed(RuntimeError):
    """
    Raised when every candidate of a fallback chain was skipped or failed.
    Only real failures are listed in the message; `attempts` keeps the
    skipped entries as well.
    """

    def __init__(self, attempts: Sequence[FallbackAttempt]):
        self.attempts = list(attempts)
        summary = "; ".join(
            f"{attempt.provider}: {attempt.error}"
            for attempt in self.attempts
            if attempt.error
        )
        super().__init__(f"All providers failed. Attempts: {summary or 'none'}")


__all__ = ["AllProvidersFailed"]
