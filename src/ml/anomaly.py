"""Statistical anomaly detection for weather series."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from src.utils.config import PatternConfig, settings

UNITS = {"temperature": "°C", "humidity": "%", "precipitation": "mm"}

# Below this the z-score is meaningless
MIN_STD = 1e-9


@dataclass
class AnomalyResult:
    metric: str
    indices: List[int] = field(default_factory=list)
    mean: float = 0.0
    std_dev: float = 0.0
    method: str = "zscore"  # "zscore" or "absolute"
    explanation: str = ""

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def is_anomaly(self) -> bool:
        return bool(self.indices)


class AnomalyDetector:
    """Flag points far from the window mean.

    Uses a z-score test when the window has a usable spread and enough points
    for a z-score to reach the threshold, otherwise an absolute deviation per
    metric.
    """

    def __init__(self, config: Optional[PatternConfig] = None):
        self.config = config or settings.patterns

    def detect(self, metric: str, values: Sequence[float]) -> AnomalyResult:
        arr = np.asarray(values, dtype=float)
        if arr.size == 0:
            return AnomalyResult(metric=metric)

        mean = float(arr.mean())
        std = float(arr.std())
        deviation = np.abs(arr - mean)

        # Population z-scores cannot exceed sqrt(n - 1), so short windows need the absolute test
        if arr.size < 3 or std < MIN_STD or np.sqrt(arr.size - 1) <= self.config.anomaly_sigma:
            limit = self.config.anomaly_abs_deviation.get(metric)
            if limit is None:
                return AnomalyResult(metric=metric, mean=mean, std_dev=std, method="absolute")
            flagged = np.flatnonzero(deviation > limit)
            method = "absolute"
        else:
            flagged = np.flatnonzero(deviation / std > self.config.anomaly_sigma)
            method = "zscore"

        result = AnomalyResult(
            metric=metric,
            indices=[int(i) for i in flagged],
            mean=mean,
            std_dev=std,
            method=method,
        )
        if result.is_anomaly:
            peak = float(arr[flagged][np.argmax(deviation[flagged])])
            result.explanation = self._explain(metric, result.count, peak, mean)
        return result

    def detect_all(self, series: Dict[str, Sequence[float]]) -> List[AnomalyResult]:
        """Flagged results only, in the order of `series`."""
        flagged = []
        for metric, values in series.items():
            result = self.detect(metric, values)
            if result.is_anomaly:
                logger.debug(f"{result.count} {metric} anomalies ({result.method})")
                flagged.append(result)
        return flagged

    def _explain(self, metric: str, count: int, peak: float, mean: float) -> str:
        unit = UNITS.get(metric, "")
        noun = "reading" if count == 1 else "readings"
        return f"Unusual {metric}: {count} {noun}, peak {peak:.1f}{unit} vs mean {mean:.1f}{unit}"
