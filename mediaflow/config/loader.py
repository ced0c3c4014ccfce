"""配置文件的加载与保存。"""

import json
from pathlib import Path

from loguru import logger

from mediaflow.config.schema import Config

# 配置文件根键 -> Config 字段；各配置段自身的键由 CamelModel 别名处理
ROOT_KEYS = {
    "preprocessor": "preprocessor",
    "mediaDir": "media_dir",
    "cloudUploadOptions": "cloud_upload_options",
    "uploadQueue": "upload_queue",
    "channels": "channels",
}

# 旧版配置使用的根键
LEGACY_KEYS = {
    "messagePreprocessor": "preprocessor",
}


def get_config_path() -> Path:
    """获取默认配置文件路径。"""
    return Path.home() / ".mediaflow" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    从文件加载配置，文件不存在或无效时返回默认配置。

    cloudUploadOptions 可以省略或显式写为 null，两者都表示未配置云上传。
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            return Config.model_validate(_from_file_keys(_migrate_config(data)))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"无法从 {path} 加载配置，使用默认配置：{e}")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """将配置以 camelCase 键保存到文件。未配置云上传时省略 cloudUploadOptions。"""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {}
    for key, field in ROOT_KEYS.items():
        value = getattr(config, field)
        if value is None:
            continue
        data[key] = value.model_dump(by_alias=True) if hasattr(value, "model_dump") else value

    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _migrate_config(data: dict) -> dict:
    """将旧配置格式迁移到当前格式。"""
    for old, new in LEGACY_KEYS.items():
        if old in data and new not in data:
            data[new] = data.pop(old)
    return data


def _from_file_keys(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValueError("配置文件的顶层必须是对象")
    result = {}
    for key, value in data.items():
        field = ROOT_KEYS.get(key) or (key if key in ROOT_KEYS.values() else None)
        if field is None:
            logger.warning(f"忽略未知的配置键 {key}")
            continue
        result[field] = value
    return result
