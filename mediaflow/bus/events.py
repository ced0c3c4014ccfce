"""消息总线的事件类型。"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from mediaflow.utils.helpers import mime_extension

# 聊天地址的通道类型后缀（私聊 / 群聊）
CHAT_SUFFIXES = ("@c.us", "@g.us")


@dataclass(frozen=True)
class LegacyMedia:
    """需要显式解密才能使用的媒体引用。"""
    url: str  # 加密媒体的下载地址


@dataclass(frozen=True)
class Message:
    """
    从聊天客户端接收的消息。

    消息是不可变的：每个预处理器都通过 dataclasses.replace()
    返回一个新的副本，而不是原地修改。
    """

    id: str  # 全局唯一，以 "_" 分隔的最后一段是序列后缀
    chat_id: str  # 聊天地址，例如 12345@g.us
    sender_id: str = ""
    body: str = ""  # 消息文本，媒体消息时为缩略图 base64
    content: str = ""
    mimetype: str = ""
    from_me: bool = False  # 是否由当前登录的账号发出
    timestamp: datetime = field(default_factory=datetime.now)
    media: LegacyMedia | None = None
    cloud_url: str | None = None  # UPLOAD_CLOUD 的输出
    file_path: str | None = None  # AUTO_DECRYPT_SAVE 的输出
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_legacy_media(self) -> bool:
        """该消息是否携带需要解密的媒体。"""
        return self.media is not None

    @property
    def media_filename(self) -> str:
        """由消息 ID 的序列后缀和 MIME 类型派生的文件名。"""
        suffix = self.id.split("_")[-1]
        return f"{suffix}.{mime_extension(self.mimetype)}"

    @property
    def chat_address(self) -> str:
        """去掉通道类型后缀的聊天标识。"""
        address = self.chat_id
        for suffix in CHAT_SUFFIXES:
            address = address.replace(suffix, "")
        return address
