"""Stale file classification."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Union

from .models import FileRecord, ReferenceAttribute, StaleCandidate, StaleReport


class StaleClassifier:
    """Finds files that have gone untouched for at least a threshold."""

    def __init__(self, threshold: timedelta,
                 reference: Union[ReferenceAttribute, str] = ReferenceAttribute.MODIFIED):
        """Initialize stale classifier.

        Args:
            threshold: Minimum age for a file to count as stale (inclusive).
            reference: Timestamp the age is measured from.
        """
        if threshold < timedelta(0):
            raise ValueError(f"Threshold must not be negative, got {threshold}")
        self.threshold = threshold
        self.reference = ReferenceAttribute(reference)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_days(cls, days: float,
                  reference: Union[ReferenceAttribute, str] = ReferenceAttribute.MODIFIED) -> "StaleClassifier":
        return cls(timedelta(days=days), reference)

    def classify(self, records: Iterable[FileRecord], now: datetime) -> StaleReport:
        """Classify regular files by age.

        Args:
            records: Records to inspect; directories and symlinks are ignored.
            now: Reference instant, captured once by the caller.

        Returns:
            StaleReport with candidates oldest first. Files whose metadata
            failed or whose reference timestamp is unavailable are listed
            as unknown.
        """
        if now.tzinfo is None:
            now = now.astimezone(timezone.utc)

        candidates: List[StaleCandidate] = []
        unknown: List[FileRecord] = []

        for record in records:
            if record.error is not None:
                if not record.is_directory:
                    unknown.append(record)
                continue
            if not record.is_file:
                continue

            stamp = record.reference_time(self.reference)
            if stamp is None:
                unknown.append(record)
                continue

            age = now - stamp
            if age >= self.threshold:
                candidates.append(StaleCandidate(record=record, age=age, threshold=self.threshold))

        candidates.sort(key=lambda candidate: (-candidate.age, candidate.path))
        unknown.sort(key=lambda record: record.path)

        self.logger.info(
            f"Stale classification: {len(candidates)} stale, {len(unknown)} unknown "
            f"(threshold {self.threshold.days} days, by {self.reference.value} time)"
        )
        return StaleReport(
            candidates=candidates,
            unknown=unknown,
            reference=self.reference,
            threshold=self.threshold,
            now=now,
        )
