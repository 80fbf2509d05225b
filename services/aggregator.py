"""Summary statistics over scored readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from models.records import ScoreResult, SoilHealthBand


@dataclass
class ScoreSummary:
    row_count: int = 0
    min_percent: float | None = None
    max_percent: float | None = None
    mean_percent: float | None = None
    per_band_count: Dict[SoilHealthBand, int] = field(default_factory=dict)


class ScoreAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, results: Iterable[ScoreResult]) -> ScoreSummary:
        summary = ScoreSummary()
        total = 0.0

        for result in results:
            summary.row_count += 1
            percent = result.percent
            total += percent

            if summary.min_percent is None or percent < summary.min_percent:
                summary.min_percent = percent
            if summary.max_percent is None or percent > summary.max_percent:
                summary.max_percent = percent

            summary.per_band_count[result.band] = summary.per_band_count.get(result.band, 0) + 1

        if summary.row_count:
            summary.mean_percent = total / summary.row_count

        return summary
