"""
Random bags: a multiset of items drawn from one per trial.

The replacement rule decides what happens to a drawn item:

- AFTER_EACH_PICK: every item goes back before the next pick, so each
  trial is an independent uniform pick over all items (weighted by count)
- WHEN_EMPTY:      items stay out until the bag is empty, then the bag is
                   refilled; trials are consecutive shuffles of the bag
- NEVER:           items never go back; a run cannot draw more items than
                   the bag holds
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
from numpy.typing import NDArray

from src.simulation.exceptions import EmptyBagError, RandomBagItemCountError
from src.simulation.sampler import DistributionSampler


class RandomBagReplacement(Enum):
    """When drawn items are put back into a random bag."""

    AFTER_EACH_PICK = "after_each_pick"
    WHEN_EMPTY = "when_empty"
    NEVER = "never"


class RandomBag:
    """
    Item counts plus a replacement rule.

    Mixed into the numeric and the qualitative bag parameters; subclasses
    set ``item_dtype`` and ``_coerce_item`` for their item type and provide
    ``name``.
    """

    item_dtype: Any = np.float64
    name: str

    def __init__(
        self,
        contents: Optional[Mapping[Any, int]] = None,
        replacement: Union[RandomBagReplacement, str] = RandomBagReplacement.AFTER_EACH_PICK,
    ) -> None:
        self.replacement = RandomBagReplacement(replacement)
        self._contents: Dict[Any, int] = {}
        for item, count in (contents or {}).items():
            self.add(item, count)

    def _coerce_item(self, item: Any) -> Any:
        return float(item)

    def add(self, item: Any, count: int = 1) -> None:
        """Put ``count`` copies of ``item`` into the bag."""
        if count < 1:
            raise ValueError(f"count must be >= 1. Got {count}")
        item = self._coerce_item(item)
        self._contents[item] = self._contents.get(item, 0) + int(count)

    def remove(self, item: Any, count: int = 1) -> None:
        """Take up to ``count`` copies of ``item`` out; absent items are ignored."""
        item = self._coerce_item(item)
        if item not in self._contents:
            return
        remaining = self._contents[item] - int(count)
        if remaining <= 0:
            del self._contents[item]
        else:
            self._contents[item] = remaining

    def remove_all(self, item: Any) -> None:
        """Take every copy of ``item`` out."""
        self._contents.pop(self._coerce_item(item), None)

    def empty(self) -> None:
        self._contents.clear()

    @property
    def contents(self) -> Dict[Any, int]:
        """Item -> count, in insertion order."""
        return dict(self._contents)

    @property
    def number_of_items(self) -> int:
        return sum(self._contents.values())

    @property
    def is_empty(self) -> bool:
        return not self._contents

    def contents_to_array(self) -> NDArray:
        """Every item repeated by its count, shape (number_of_items,)"""
        items = np.array(list(self._contents), dtype=self.item_dtype)
        counts = np.array(list(self._contents.values()), dtype=np.int64)
        return np.repeat(items, counts)

    def check_draw_count(self, n_trials: int) -> None:
        """
        Check that ``n_trials`` items can be drawn.

        Raises
        ------
        EmptyBagError
            If the bag holds no items.
        RandomBagItemCountError
            If the rule is NEVER and the bag holds fewer than ``n_trials``
            items.
        """
        if self.is_empty:
            raise EmptyBagError(f"Random bag '{self.name}' does not contain any items")
        items = self.number_of_items
        if self.replacement is RandomBagReplacement.NEVER and items < n_trials:
            raise RandomBagItemCountError(
                f"{n_trials} selections were requested from a bag containing {items} items. "
                "This is not possible when the replacement rule is set to never."
            )

    def draw(self, n_trials: int, sampler: DistributionSampler) -> NDArray:
        """Draw one item per trial under the replacement rule."""
        self.check_draw_count(n_trials)
        items = self.contents_to_array()
        if n_trials == 0:
            return items[:0]

        if self.replacement is RandomBagReplacement.AFTER_EACH_PICK:
            return items[sampler.rng.integers(0, len(items), size=n_trials)]

        if self.replacement is RandomBagReplacement.NEVER:
            return sampler.rng.permutation(items)[:n_trials]

        rounds = -(-n_trials // len(items))
        return np.concatenate([sampler.rng.permutation(items) for _ in range(rounds)])[:n_trials]
