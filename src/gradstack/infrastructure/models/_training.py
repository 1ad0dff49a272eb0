"""
Training helpers built on the module contract and `optimise`.

- `train_on_batch` runs forward and backward for every sample of one batch,
  letting gradients accumulate, then applies a single `optimise` step with
  ``batch_count = len(batch)``.
- `evaluate` computes the mean loss with inference-mode `calc`.
- `fit` runs a fixed number of epochs over a dataset, shuffling sample order
  with a NumPy generator, and records per-epoch metrics in a `History`.

Modules and optimisers are updated in place; the helpers keep the instances
returned by `optimise` internally, so the objects passed in remain the ones to
use afterwards.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from .._losses import Loss
from .._module import Module
from ..optimizers._base import Optimiser
from ..optimizers._optimise import optimise
from ._history import History


def _check_dataset(inputs: Sequence[Any], targets: Sequence[Any]) -> int:
    n = len(inputs)
    if len(targets) != n:
        raise ValueError(
            f"inputs and targets must have same length, got {n} and {len(targets)}"
        )
    return n


def train_on_batch(
    module: Module,
    optimiser: Optimiser,
    inputs: Sequence[Any],
    targets: Sequence[Any],
    loss: Loss,
) -> Dict[str, float]:
    """
    Run one training step on a batch of samples.

    Parameters
    ----------
    module : Module
        Model to train.
    optimiser : Optimiser
        Algorithm applied once after the whole batch.
    inputs, targets : sequences
        Samples and their targets, in matching order.
    loss : Loss
        Per-sample loss.

    Returns
    -------
    Dict[str, float]
        Batch logs, ``{"loss": mean sample loss}`` measured on the training
        outputs before the update.

    Raises
    ------
    ValueError
        If the batch is empty or `inputs` and `targets` differ in length.
    """
    n = _check_dataset(inputs, targets)
    if n == 0:
        raise ValueError("train_on_batch requires at least one sample")

    total = 0.0
    for x, t in zip(inputs, targets):
        y = module.forward(x).output()
        total += loss.value(y, t)
        module.backward(x, loss.gradient(y, t))

    optimise(optimiser, module, batch_count=n)
    return {"loss": total / n}


def evaluate(
    module: Module, inputs: Sequence[Any], targets: Sequence[Any], loss: Loss
) -> float:
    """
    Return the mean loss of `module` over a dataset using `calc`.
    """
    n = _check_dataset(inputs, targets)
    if n == 0:
        raise ValueError("evaluate requires at least one sample")
    total = 0.0
    for x, t in zip(inputs, targets):
        total += loss.value(module.calc(x).output(), t)
    return total / n


def _iter_batches(
    n: int, batch_size: int, shuffle: bool, rng: np.random.Generator
) -> Iterator[np.ndarray]:
    idxs = rng.permutation(n) if shuffle else np.arange(n)
    for start in range(0, n, batch_size):
        yield idxs[start : start + batch_size]


def fit(
    module: Module,
    optimiser: Optimiser,
    inputs: Sequence[Any],
    targets: Sequence[Any],
    *,
    loss: Loss,
    batch_size: int = 32,
    epochs: int = 1,
    shuffle: bool = True,
    validation_data: Optional[Tuple[Sequence[Any], Sequence[Any]]] = None,
    rng: Optional[np.random.Generator] = None,
    verbose: int = 1,
) -> History:
    """
    Train `module` for a fixed number of epochs.

    Parameters
    ----------
    module : Module
        Model to train (updated in place).
    optimiser : Optimiser
        Algorithm applied once per batch.
    inputs, targets : sequences
        Training samples and targets.
    loss : Loss
        Per-sample loss.
    batch_size : int, optional
        Samples per optimisation step. Default is 32.
    epochs : int, optional
        Number of passes over the data. Default is 1.
    shuffle : bool, optional
        Whether to shuffle sample order each epoch. Default is True.
    validation_data : tuple, optional
        ``(inputs, targets)`` evaluated after every epoch as ``val_loss``.
    rng : Optional[np.random.Generator], optional
        Source of the shuffling order.
    verbose : int, optional
        If non-zero, prints a one-line summary per epoch. Default is 1.

    Returns
    -------
    History
        Per-epoch ``loss`` (sample-weighted mean of batch losses) and, with
        validation data, ``val_loss``.

    Raises
    ------
    ValueError
        If `epochs < 1`, `batch_size < 1` or the dataset is empty.
    """
    if epochs < 1:
        raise ValueError("epochs must be >= 1")
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    n = _check_dataset(inputs, targets)
    if n == 0:
        raise ValueError("fit requires at least one sample")
    if rng is None:
        rng = np.random.default_rng()

    hist = History()
    for epoch_idx in range(epochs):
        weighted = 0.0
        seen = 0
        for batch in _iter_batches(n, batch_size, shuffle, rng):
            xb = [inputs[i] for i in batch]
            yb = [targets[i] for i in batch]
            logs = train_on_batch(module, optimiser, xb, yb, loss)
            weighted += logs["loss"] * len(batch)
            seen += len(batch)

        epoch_logs: Dict[str, float] = {"loss": weighted / seen}
        if validation_data is not None:
            vx, vy = validation_data
            epoch_logs["val_loss"] = evaluate(module, vx, vy, loss)

        hist.append_epoch(epoch_idx, epoch_logs)

        if verbose:
            parts = [f"Epoch {epoch_idx + 1}/{epochs}"]
            for k, v in epoch_logs.items():
                parts.append(f"{k}: {v:.6f}")
            parts.append(f"seen: {seen}")
            print(" - ".join(parts))

    return hist
