"""并发受限、按时间窗口限速的异步任务队列。"""

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable

from loguru import logger

Task = Callable[[], Awaitable[Any]]


class RateLimitedQueue:
    """
    同时受两个约束的任务队列：

    - 同时运行的任务数不超过 concurrency；
    - 每个固定长度的时间窗口内启动的任务数不超过 interval_cap。

    窗口在上一个窗口结束后第一次准入任务时开始。carryover 为 True 时，
    窗口切换时仍在运行的任务会计入新窗口的配额，这样长时间运行的上传
    不会让下一个窗口突发出额外的启动。

    失败的任务会被记录并丢弃，不会阻塞队列，也不会重试。
    """

    def __init__(
        self,
        concurrency: int = 2,
        interval: float = 1.0,
        interval_cap: int = 2,
        carryover: bool = True,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency 必须 >= 1，得到的是 {concurrency}")
        if interval < 0:
            raise ValueError(f"interval 必须 >= 0，得到的是 {interval}")
        if interval_cap < 1:
            raise ValueError(f"interval_cap 必须 >= 1，得到的是 {interval_cap}")
        self.concurrency = concurrency
        self.interval = interval
        self.interval_cap = interval_cap
        self.carryover = carryover

        self._queue: deque[tuple[Task, asyncio.Future]] = deque()
        self._running = 0
        self._window_count = 0
        self._window_end = 0.0
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._idle: asyncio.Event | None = None

    async def add(self, task: Task) -> asyncio.Future:
        """
        将任务加入队列，不等待其完成。

        参数:
            task: 无参数的协程函数。

        返回:
            任务结束时完成的 Future；失败的任务以 None 完成。
        """
        if not callable(task):
            raise TypeError(f"任务必须是可调用对象，得到的是 {type(task).__name__}")
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append((task, future))
        self._idle_event().clear()
        self._drain()
        return future

    async def on_idle(self) -> None:
        """等待直到队列为空且没有正在运行的任务。"""
        if self.is_idle:
            return
        await self._idle_event().wait()

    @property
    def size(self) -> int:
        """等待启动的任务数量。"""
        return len(self._queue)

    @property
    def pending(self) -> int:
        """正在运行的任务数量。"""
        return self._running

    @property
    def is_idle(self) -> bool:
        return not self._queue and self._running == 0

    def _idle_event(self) -> asyncio.Event:
        if self._idle is None:
            self._idle = asyncio.Event()
            if self.is_idle:
                self._idle.set()
        return self._idle

    def _roll_window(self, now: float) -> None:
        if now >= self._window_end:
            self._window_end = now + self.interval
            self._window_count = self._running if self.carryover else 0

    def _drain(self) -> None:
        loop = asyncio.get_running_loop()
        while self._queue:
            if self._running >= self.concurrency:
                return
            if self.interval > 0:
                self._roll_window(loop.time())
                if self._window_count >= self.interval_cap:
                    self._schedule_next_window(loop)
                    return
                self._window_count += 1
            task, future = self._queue.popleft()
            self._running += 1
            running = loop.create_task(self._run(task, future))
            self._tasks.add(running)
            running.add_done_callback(self._tasks.discard)

    def _schedule_next_window(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._timer is not None:
            return
        self._timer = loop.call_at(self._window_end, self._on_window_end)

    def _on_window_end(self) -> None:
        self._timer = None
        # 计时器可能在时钟精度范围内提前触发
        self._roll_window(max(asyncio.get_running_loop().time(), self._window_end))
        self._drain()

    async def _run(self, task: Task, future: asyncio.Future) -> None:
        result = None
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            logger.warning(f"队列任务失败，已丢弃：{e}")
        finally:
            self._running -= 1
            if not future.done():
                future.set_result(result)
            self._drain()
            if self.is_idle and self._idle is not None:
                self._idle.set()
