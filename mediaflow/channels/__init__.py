"""具有插件架构的聊天通道模块。"""

from mediaflow.channels.base import BaseChannel
from mediaflow.channels.manager import ChannelManager

__all__ = ["BaseChannel", "ChannelManager"]
