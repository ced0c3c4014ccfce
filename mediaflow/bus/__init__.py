"""用于把预处理后的消息交给应用代码的消息总线模块。"""

from mediaflow.bus.events import LegacyMedia, Message
from mediaflow.bus.queue import MessageBus

__all__ = ["MessageBus", "Message", "LegacyMedia"]
