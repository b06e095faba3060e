import logging
from collections.abc import Callable

from src.modules.normalizer.schemas import CanonicalItem

logger = logging.getLogger(__name__)

AggregateStep = Callable[[list[CanonicalItem]], list[CanonicalItem]]


class AggregatorComposer:
    """Runs the merged item list through named steps in order.

    The aggregator registers filter, dedupe, rank, per-host cap and limit;
    each step takes and returns a full list.
    """

    def __init__(self) -> None:
        self._steps: list[tuple[str, AggregateStep]] = []

    def add_step(self, name: str, step: AggregateStep) -> None:
        self._steps.append((name, step))

    def run(self, items: list[CanonicalItem]) -> list[CanonicalItem]:
        logger.info("Aggregation started (%d steps, %d items)", len(self._steps), len(items))
        for name, step in self._steps:
            items = step(items)
            logger.info("Step '%s': %d items remaining", name, len(items))
        logger.info("Aggregation finished: %d items", len(items))
        return items
