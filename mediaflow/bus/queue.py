"""用于把预处理后的消息交给应用代码的异步消息队列。"""

import asyncio

from mediaflow.bus.events import Message


class MessageBus:
    """
    将聊天通道与应用代码解耦的异步消息总线。

    通道在预处理之后把消息推送到队列，应用代码从队列中消费。
    """

    def __init__(self):
        self.inbound: asyncio.Queue[Message] = asyncio.Queue()

    async def publish(self, msg: Message) -> None:
        """发布一条已预处理的消息。"""
        await self.inbound.put(msg)

    async def consume(self) -> Message:
        """消费下一条消息（阻塞直到可用）。"""
        return await self.inbound.get()

    @property
    def size(self) -> int:
        """待消费的消息数量。"""
        return self.inbound.qsize()
