import threading

import numpy as np
import pytest

from models.errors import FormatError, InferenceError, ModelLoadError
from services.image_preprocessor import ImagePreprocessor
from services.segmentation_service import SegmentationService
from utils.async_worker import ThreadedAsyncWorker


def test_predict_builds_label_grid(make_adapter, immediate_worker, photo):
    adapter = make_adapter(["bg", "cat", "dog"], [[0, 2, 2], [1, 1, 0]])
    service = SegmentationService(adapter, worker=immediate_worker)
    model = service.load_model()

    grid = service.predict(photo, model)

    assert grid.shape == (2, 3)
    assert grid.unique_labels() == ["bg", "cat", "dog"]
    assert adapter.buffers[0].size == (448, 448)


def test_unexpected_adapter_errors_are_wrapped(make_adapter, immediate_worker, photo):
    adapter = make_adapter(["bg"], RuntimeError("driver lost"))
    service = SegmentationService(adapter, worker=immediate_worker)
    model = service.load_model()

    with pytest.raises(InferenceError):
        service.predict(photo, model)


def test_empty_label_table_fails_loading(make_adapter, immediate_worker):
    service = SegmentationService(make_adapter([], [[0]]), worker=immediate_worker)
    with pytest.raises(ModelLoadError):
        service.load_model()


def test_generic_load_failure_becomes_model_load_error(make_adapter, immediate_worker):
    adapter = make_adapter(["bg"], [[0]])

    def _fail():
        raise OSError("corrupt file")

    adapter.load = _fail
    service = SegmentationService(adapter, worker=immediate_worker)
    with pytest.raises(ModelLoadError):
        service.load_model()


def test_format_error_propagates(make_adapter, immediate_worker):
    service = SegmentationService(make_adapter(["bg"], [[0]]), worker=immediate_worker)
    model = service.load_model()
    with pytest.raises(FormatError):
        service.predict(np.zeros((3, 3, 2), dtype=np.uint8), model)


def test_run_inference_on_background_thread(make_adapter, photo):
    adapter = make_adapter(["bg", "cat"], [[0, 1]])
    worker = ThreadedAsyncWorker(name="test-worker")
    service = SegmentationService(
        adapter,
        preprocessor=ImagePreprocessor(target_size=(8, 8)),
        worker=worker,
    )
    done = threading.Event()
    results = {}

    def _on_success(grid):
        results["grid"] = grid
        results["thread"] = threading.current_thread().name
        done.set()

    def _on_error(exc):
        results["error"] = exc
        done.set()

    try:
        model = service.load_model()
        service.run_inference(image=photo, model=model, on_success=_on_success, on_error=_on_error)
        assert done.wait(timeout=5)
    finally:
        service.shutdown()

    assert "error" not in results
    assert results["grid"].unique_labels() == ["bg", "cat"]
    assert results["thread"] == "test-worker"


def test_async_errors_reach_on_error(make_adapter, immediate_worker, photo):
    adapter = make_adapter(["bg"], InferenceError("boom"))
    service = SegmentationService(adapter, worker=immediate_worker)
    errors = []
    model = service.load_model()

    service.run_inference(image=photo, model=model, on_success=lambda grid: None, on_error=errors.append)

    assert len(errors) == 1
    assert isinstance(errors[0], InferenceError)
