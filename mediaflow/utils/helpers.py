"""mediaflow 的实用函数。"""

import base64
import mimetypes
from pathlib import Path

# mimetypes 对少数常见类型给出的扩展名与聊天客户端习惯不一致
_PREFERRED_EXTENSIONS = {
    "image/jpeg": "jpeg",
    "audio/ogg": "oga",
    "audio/mpeg": "mp3",
    "video/mp4": "mp4",
    "image/webp": "webp",
}


def ensure_dir(path: Path) -> Path:
    """确保目录存在，如有必要则创建。"""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """获取 mediaflow 数据目录（~/.mediaflow）。"""
    return ensure_dir(Path.home() / ".mediaflow")


def mime_extension(mimetype: str) -> str:
    """
    将 MIME 类型转换为不带点的文件扩展名。

    忽略 "; codecs=opus" 之类的参数，未知类型返回 "bin"。
    """
    base = (mimetype or "").split(";")[0].strip().lower()
    if not base:
        return "bin"
    if base in _PREFERRED_EXTENSIONS:
        return _PREFERRED_EXTENSIONS[base]
    ext = mimetypes.guess_extension(base)
    return ext.lstrip(".") if ext else "bin"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """
    解码 data URL。

    返回:
        (原始字节, MIME 类型)。没有头部时按纯 base64 处理。

    异常:
        ValueError: 如果 base64 内容无效。
    """
    header, sep, payload = data_url.partition(",")
    if not sep:
        header, payload = "", data_url
    mimetype = header[len("data:"):].split(";")[0] if header.startswith("data:") else ""
    return base64.b64decode(payload, validate=True), mimetype or "application/octet-stream"
