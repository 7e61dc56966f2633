# src/models/results.py

"""Result values for expected acquisition failures."""

from dataclasses import dataclass, field
from enum import Enum


class FailureReason(str, Enum):
    """Why a single extraction strategy produced no usable record."""

    UNSUPPORTED = "unsupported"
    TRANSPORT = "transport"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class Failure:
    """One strategy attempt that did not yield a valid record."""

    strategy: str
    reason: FailureReason
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.strategy}: {self.reason.value} ({self.detail})"
        return f"{self.strategy}: {self.reason.value}"


@dataclass
class AcquisitionFailed:
    """Every permitted strategy failed for one ``acquire()`` call."""

    url: str
    platform: str
    attempts: list[Failure] = field(
        default_factory=lambda: list[Failure]()
    )

    def summary(self) -> str:
        """One-line diagnostic listing each attempt in try order."""
        if not self.attempts:
            return f"[{self.platform}] no strategy attempted for {self.url}"
        tried = "; ".join(str(a) for a in self.attempts)
        return f"[{self.platform}] could not retrieve {self.url}: {tried}"
