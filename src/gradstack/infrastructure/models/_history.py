"""
Per-epoch metric record returned by `fit()`.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Union

Number = Union[int, float]


@dataclass
class History:
    """
    Epoch-indexed training metrics.

    ``history["loss"][i]`` is the loss recorded for ``epoch[i]``. A metric that
    first appears part-way through training simply has a shorter list.
    """

    history: Dict[str, List[float]] = field(default_factory=dict)
    epoch: List[int] = field(default_factory=list)

    def append_epoch(self, epoch_idx: int, logs: Mapping[str, Number]) -> None:
        self.epoch.append(int(epoch_idx))
        for name, value in logs.items():
            self.history.setdefault(name, []).append(float(value))

    def last(self) -> Dict[str, float]:
        """
        Latest value of every metric seen so far.
        """
        return {name: values[-1] for name, values in self.history.items() if values}

    def __len__(self) -> int:
        return len(self.epoch)
