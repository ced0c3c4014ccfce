"""聊天平台的基类通道接口。"""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from mediaflow.bus.events import Message
from mediaflow.bus.queue import MessageBus
from mediaflow.processors.registry import PreprocessorRegistry


class BaseChannel(ABC):
    """
    聊天通道实现的抽象基类。

    通道本身也是 MediaDecryptor：预处理器通过 decrypt_media()
    向聊天客户端请求解密后的媒体。
    """

    name: str = "base"

    def __init__(
        self,
        config: Any,
        bus: MessageBus,
        preprocessors: PreprocessorRegistry | None = None,
        preprocessor: str = "",
    ):
        """
        初始化通道。

        参数:
            config: 通道特定的配置。
            bus: 用于把消息交给应用代码的消息总线。
            preprocessors: 预处理器注册表。
            preprocessor: 要应用的预处理器名称，空表示不处理。
        """
        self.config = config
        self.bus = bus
        self.preprocessors = preprocessors
        self.preprocessor = preprocessor
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """启动通道并开始监听消息。"""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """停止通道并清理资源。"""
        pass

    @abstractmethod
    async def decrypt_media(self, message: Message) -> str:
        """
        解密消息中的媒体。

        返回:
            媒体的 data URL。
        """
        pass

    def is_allowed(self, sender_id: str) -> bool:
        """
        检查发送者是否被允许。

        参数:
            sender_id: 发送者的标识符。

        返回:
            如果允许则返回 True，否则返回 False。
        """
        allow_list = getattr(self.config, "allow_from", [])

        # 如果没有允许列表，允许所有人
        if not allow_list:
            return True

        return str(sender_id) in allow_list

    async def _handle_message(self, message: Message) -> None:
        """
        处理来自聊天平台的传入消息。

        检查权限，应用配置的预处理器，然后转发到总线。
        """
        if not self.is_allowed(message.sender_id):
            logger.warning(
                f"拒绝发送者 {message.sender_id} 在通道 {self.name} 上的访问。"
                f"将他们添加到配置中的 allowFrom 列表以授予访问权限。"
            )
            return

        if self.preprocessors and self.preprocessor:
            message = await self.preprocessors.process(self.preprocessor, message, self)

        await self.bus.publish(message)

    @property
    def is_running(self) -> bool:
        """检查通道是否正在运行。"""
        return self._running
