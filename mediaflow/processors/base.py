"""预处理器的名称、签名和外部能力接口。"""

from enum import Enum
from typing import Awaitable, Callable, Protocol

from mediaflow.bus.events import Message


class MediaDecryptor(Protocol):
    """解密能力：返回消息媒体的 data URL。失败时抛出异常。"""

    async def decrypt_media(self, message: Message) -> str:
        ...


MessagePreprocessor = Callable[[Message, MediaDecryptor], Awaitable[Message]]


class PreprocessorName(str, Enum):
    """内置的消息预处理器。"""

    # 清空媒体消息的 body 和 content（两者都只是缩略图）
    SCRUB = "SCRUB"
    # 清空 content，只保留 body，去掉重复的 base64
    BODY_ONLY = "BODY_ONLY"
    # 用真实文件的 data URL 替换 body 中的缩略图
    AUTO_DECRYPT = "AUTO_DECRYPT"
    # 解密并保存到本地媒体目录（需要手动清理）
    AUTO_DECRYPT_SAVE = "AUTO_DECRYPT_SAVE"
    # 上传到云存储并在 cloud_url 中附上地址
    UPLOAD_CLOUD = "UPLOAD_CLOUD"
