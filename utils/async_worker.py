import logging
import threading
from collections.abc import Callable
from queue import Queue
from typing import Any, NamedTuple, Optional


class _Task(NamedTuple):
    function: Callable
    args: tuple
    kwargs: dict
    callback: Optional[Callable[[Any], None]]


class ThreadedAsyncWorker:
    """
    Runs tasks one at a time in a dedicated thread and invokes an optional callback
    with the result. A task that raises hands the exception to the callback instead.

    Callbacks run on the worker thread; callers re-dispatch to their own thread.
    """

    def __init__(self, name: str):
        self.name = name
        self.task_queue: "Queue[Optional[_Task]]" = Queue()
        self.worker_thread = self._new_thread(self.task_queue)
        self._started = False
        self.logger = logging.getLogger(__name__)

    def _new_thread(self, task_queue: "Queue[Optional[_Task]]") -> threading.Thread:
        return threading.Thread(target=self._run, args=(task_queue,), daemon=True, name=self.name)

    def _run(self, task_queue: "Queue[Optional[_Task]]") -> None:
        while True:
            task = task_queue.get()
            if task is None:
                break
            try:
                result = task.function(*task.args, **task.kwargs)
            except Exception as exc:
                self.logger.debug("Tâche %s en échec: %s", self.name, exc)
                result = exc
            if task.callback is not None:
                task.callback(result)

    def enqueue_task(
        self,
        task_function: Callable,
        callback: Callable | None = None,
        args=(),
        kwargs=None,
    ) -> None:
        """Met une tâche en file ; démarre le thread au besoin."""
        self.start()
        self.task_queue.put(_Task(task_function, tuple(args), dict(kwargs or {}), callback))

    def stop(self, wait: bool = True) -> None:
        if not self._started:
            return
        self.task_queue.put(None)
        if wait:
            self.worker_thread.join()
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        if self.worker_thread.ident is not None:
            # un thread arrêté ne redémarre pas ; sa file garde sa sentinelle
            self.task_queue = Queue()
            self.worker_thread = self._new_thread(self.task_queue)
        self._started = True
        self.worker_thread.start()

    @property
    def is_started(self) -> bool:
        return self._started
