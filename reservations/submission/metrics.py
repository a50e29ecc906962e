"""Statistics helpers for booking submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class SubmissionStats:
    """Mutable counters tracking create-booking calls across a session."""

    total_attempts: int = 0
    successful_bookings: int = 0
    failed_bookings: int = 0
    recurring_batches: int = 0
    partial_batches: int = 0
    total_execution_time: float = 0.0

    def record_success(self, execution_time: Optional[float] = None) -> None:
        self.successful_bookings += 1
        self.total_attempts += 1
        self._record_execution_time(execution_time)

    def record_failure(self, execution_time: Optional[float] = None) -> None:
        self.failed_bookings += 1
        self.total_attempts += 1
        self._record_execution_time(execution_time)

    def record_batch(self, *, partial: bool) -> None:
        self.recurring_batches += 1
        if partial:
            self.partial_batches += 1

    def _record_execution_time(self, execution_time: Optional[float]) -> None:
        if execution_time is None:
            return
        try:
            value = float(execution_time)
        except (TypeError, ValueError):
            return
        if value < 0:
            return
        self.total_execution_time += value

    @property
    def avg_execution_time(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.total_execution_time / self.total_attempts

    @property
    def success_rate(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return (self.successful_bookings / self.total_attempts) * 100

    def format_report(self) -> str:
        lines = [
            "Booking Submission Report",
            f"Successful: {self.successful_bookings}",
            f"Failed: {self.failed_bookings}",
            f"Total Attempts: {self.total_attempts}",
            f"Success Rate: {self.success_rate:.2f}%",
            f"Avg Execution Time: {self.avg_execution_time:.2f}s",
        ]
        if self.recurring_batches:
            lines.append(f"Recurring Batches: {self.recurring_batches} ({self.partial_batches} partial)")
        return "\n".join(lines)
