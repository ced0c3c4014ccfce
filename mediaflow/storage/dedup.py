"""已加入上传队列的文件名注册表。"""

from collections import OrderedDict

from loguru import logger


class DedupRegistry:
    """
    防止同一逻辑文件被重复上传的注册表。

    认领在发出上传之前完成，因此即使上传仍在进行中，
    同一文件名的并发调用也会被去重。check-then-claim 中间
    没有挂起点，在单线程事件循环中是原子的。
    """

    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries
        self._claimed: OrderedDict[str, bool] = OrderedDict()

    def try_claim(self, filename: str) -> bool:
        """
        认领一个文件名。

        返回:
            首次认领返回 True，已被认领则返回 False。
        """
        if filename in self._claimed:
            self._claimed.move_to_end(filename)
            return False
        self._claimed[filename] = True
        if self.max_entries is not None and len(self._claimed) > self.max_entries:
            evicted, _ = self._claimed.popitem(last=False)
            logger.debug(f"去重注册表已满，移除最久未使用的 {evicted}")
        return True

    def release(self, filename: str) -> None:
        """释放认领，使文件名可以再次上传。"""
        self._claimed.pop(filename, None)

    def __contains__(self, filename: str) -> bool:
        return filename in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)
