"""Mutable per-dimension threshold store."""

import logging
from collections.abc import Mapping

from src.alerts.config import ThresholdConfig
from src.alerts.schemas import METRIC_DIMENSIONS

logger = logging.getLogger(__name__)


class ThresholdStore:
    """Holds the live threshold mapping consulted by every evaluation.

    Updates shallow-merge into the current mapping and are visible to the
    next ``get`` call. No range validation is applied.
    """

    def __init__(self, config: ThresholdConfig | None = None) -> None:
        config = config or ThresholdConfig()
        self._thresholds: dict[str, float] = {
            dimension: float(getattr(config, dimension))
            for dimension in METRIC_DIMENSIONS
        }

    def get(self, dimension: str) -> float:
        """Return the current threshold for a dimension.

        Raises:
            KeyError: If the dimension is unknown.
        """
        return self._thresholds[dimension]

    def as_dict(self) -> dict[str, float]:
        """Return a copy of the current thresholds."""
        return dict(self._thresholds)

    def update(self, partial: Mapping[str, float]) -> dict[str, float]:
        """Merge new values into the current thresholds.

        Args:
            partial: Dimension → new threshold. Absent dimensions are kept.

        Returns:
            The merged thresholds.

        Raises:
            ValueError: If a key is not a known metric dimension or a value
                is not numeric. The store is unchanged in either case.
        """
        unknown = set(partial) - set(METRIC_DIMENSIONS)
        if unknown:
            raise ValueError(
                f"Unknown threshold dimension(s) {sorted(unknown)}. "
                f"Must be one of: {list(METRIC_DIMENSIONS)}"
            )

        # Convert everything before writing so a bad value leaves no partial merge.
        merged = {dimension: float(value) for dimension, value in partial.items()}
        self._thresholds.update(merged)

        logger.info("Alert thresholds updated: %s", self._thresholds)
        return self.as_dict()
