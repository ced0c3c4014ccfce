"""简单的预处理器：清理、解密和保存到磁盘。"""

from dataclasses import replace
from pathlib import Path

from loguru import logger

from mediaflow.bus.events import Message
from mediaflow.errors import LocalWriteError
from mediaflow.processors.base import MediaDecryptor
from mediaflow.utils.helpers import decode_data_url


async def scrub(message: Message, client: MediaDecryptor | None = None) -> Message:
    if message.is_legacy_media:
        return replace(message, body="", content="")
    return message


async def body_only(message: Message, client: MediaDecryptor | None = None) -> Message:
    if message.is_legacy_media:
        return replace(message, content="")
    return message


async def auto_decrypt(message: Message, client: MediaDecryptor) -> Message:
    if message.is_legacy_media:
        return replace(message, body=await client.decrypt_media(message))
    return message


def _write_media(path: Path, media_data: str) -> None:
    try:
        data, _ = decode_data_url(media_data)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except (OSError, ValueError) as e:
        raise LocalWriteError(f"无法写入 {path}：{e}") from e


async def auto_decrypt_save(
    message: Message,
    client: MediaDecryptor,
    media_dir: str | Path = "media",
) -> Message:
    """
    解密媒体并保存到 media_dir。

    成功时 body 变为文件名、content 清空并附上 file_path；
    写入失败时记录日志并原样返回消息。
    """
    if not message.is_legacy_media:
        return message

    filename = message.media_filename
    media_data = await client.decrypt_media(message)
    file_path = Path(media_dir) / filename
    try:
        _write_media(file_path, media_data)
    except LocalWriteError as e:
        logger.error(f"{e}")
        return message

    return replace(message, body=filename, content="", file_path=str(file_path))
