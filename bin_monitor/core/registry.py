from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from bin_monitor.config import BinDefinition

LOGGER = logging.getLogger(__name__)


class NotFoundError(LookupError):
    def __init__(self, bin_id: int) -> None:
        super().__init__(f"Bin {bin_id} is not registered")
        self.bin_id = bin_id


class BinRegistry:
    """Fixed, ordered set of bins. Iteration follows ascending id."""

    def __init__(self, bins: Iterable[BinDefinition]) -> None:
        ordered = sorted(bins, key=lambda item: item.id)
        self._bins: dict[int, BinDefinition] = {item.id: item for item in ordered}
        if len(self._bins) != len(ordered):
            raise ValueError("Bin ids must be unique")

    def __iter__(self) -> Iterator[BinDefinition]:
        return iter(self._bins.values())

    def __len__(self) -> int:
        return len(self._bins)

    def __contains__(self, bin_id: object) -> bool:
        return bin_id in self._bins

    @property
    def ids(self) -> list[int]:
        return list(self._bins)

    def get(self, bin_id: int) -> BinDefinition:
        try:
            return self._bins[bin_id]
        except KeyError:
            LOGGER.warning("Unknown bin id %s", bin_id)
            raise NotFoundError(bin_id) from None
