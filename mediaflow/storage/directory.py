"""存储目录策略：根据消息元数据和当前时间推导路径前缀。"""

from datetime import datetime, timezone
from enum import Enum

from mediaflow.bus.events import Message


class DirectoryStrategy(str, Enum):
    """内置的目录策略。任何其他字符串都被视为自定义的静态目录。"""
    BY_DATE = "DATE"
    BY_CHAT = "CHAT"
    BY_DATE_THEN_CHAT = "DATE_CHAT"
    BY_CHAT_THEN_DATE = "CHAT_DATE"


def _date_component(now: datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%d")


def resolve_directory(strategy: DirectoryStrategy | str, message: Message, now: datetime) -> str:
    """
    将目录策略解析为存储路径前缀。

    参数:
        strategy: 内置策略或自定义目录字符串。
        message: 用于获取聊天标识的消息。
        now: 当前时间；无时区时视为 UTC。

    返回:
        路径字符串，例如 "2024-05-01/12345"。
    """
    value = strategy.value if isinstance(strategy, DirectoryStrategy) else strategy
    date = _date_component(now)
    chat = message.chat_address

    if value == DirectoryStrategy.BY_DATE.value:
        return date
    if value == DirectoryStrategy.BY_CHAT.value:
        return chat
    if value == DirectoryStrategy.BY_DATE_THEN_CHAT.value:
        return f"{date}/{chat}"
    if value == DirectoryStrategy.BY_CHAT_THEN_DATE.value:
        return f"{chat}/{date}"
    return value
