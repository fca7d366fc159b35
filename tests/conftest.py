"""Shared fakes: a synchronous worker and a scripted model adapter."""

from __future__ import annotations

from typing import Any, Callable, List, Optional

import numpy as np
import pytest

from models.errors import InferenceError
from models.label_grid import LabelGrid, LabelTable
from models.pixel_buffer import PixelBuffer
from services.inference_adapter import InferenceAdapter, InferenceOutput, LoadedModel


class ImmediateWorker:
    """Runs tasks inline, handing exceptions to the callback like the threaded worker."""

    def __init__(self) -> None:
        self.calls = 0

    def enqueue_task(self, task_function: Callable, callback: Optional[Callable] = None, args=(), kwargs=None) -> None:
        self.calls += 1
        try:
            result = task_function(*args, **(kwargs or {}))
        except Exception as exc:
            result = exc
        if callback:
            callback(result)


class DeferredWorker:
    """Queues tasks until ``run_next`` is called, to simulate slow inference."""

    def __init__(self) -> None:
        self.pending: list = []

    def enqueue_task(self, task_function: Callable, callback: Optional[Callable] = None, args=(), kwargs=None) -> None:
        self.pending.append((task_function, args, kwargs or {}, callback))

    def run_next(self, index: int = 0) -> None:
        task_function, args, kwargs, callback = self.pending.pop(index)
        try:
            result = task_function(*args, **kwargs)
        except Exception as exc:
            result = exc
        if callback:
            callback(result)


class FakeAdapter(InferenceAdapter):
    """Returns scripted label grids; records the buffers it receives."""

    def __init__(self, labels: List[str], outputs: List[Any]) -> None:
        self.labels = labels
        self.outputs = list(outputs)
        self.buffers: list[PixelBuffer] = []
        self.load_calls = 0

    def load(self) -> LoadedModel:
        self.load_calls += 1
        return LoadedModel(labels=LabelTable(self.labels), handle="fake-handle")

    def infer(self, pixel_buffer: PixelBuffer, handle: Any) -> InferenceOutput:
        self.buffers.append(pixel_buffer)
        if not self.outputs:
            raise InferenceError("no scripted output left")
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        arr = np.asarray(out)
        return InferenceOutput(indices=arr.ravel(), shape=(arr.shape[0], arr.shape[1]))


@pytest.fixture
def sky_road_grid() -> LabelGrid:
    return LabelGrid([[0, 0], [1, 1]], ["sky", "road"])


@pytest.fixture
def wide_grid() -> LabelGrid:
    # 2 rows x 4 cols, every cell a distinct label
    table = [f"c{i}" for i in range(8)]
    return LabelGrid(np.arange(8).reshape(2, 4), table)


@pytest.fixture
def photo() -> np.ndarray:
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(60, 90, 3), dtype=np.uint8)


@pytest.fixture
def immediate_worker() -> ImmediateWorker:
    return ImmediateWorker()


@pytest.fixture
def deferred_worker() -> DeferredWorker:
    return DeferredWorker()


@pytest.fixture
def make_adapter() -> Callable[..., FakeAdapter]:
    def _make(labels: List[str], *outputs: Any) -> FakeAdapter:
        return FakeAdapter(labels, list(outputs))

    return _make
