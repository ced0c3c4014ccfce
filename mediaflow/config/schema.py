"""使用 Pydantic 的配置模式。"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings


class CamelModel(BaseModel):
    """配置文件中使用 camelCase 键的配置段，同时接受 snake_case。"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class WhatsAppConfig(CamelModel):
    """WhatsApp 通道配置。"""
    enabled: bool = False
    bridge_url: str = "ws://localhost:3001"
    bridge_http_url: str = "http://localhost:3002"  # 桥接的媒体解密接口
    allow_from: list[str] = Field(default_factory=list)  # 允许的电话号码


class ChannelsConfig(CamelModel):
    """聊天通道的配置。"""
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)


class CloudUploadConfig(CamelModel):
    """云存储上传配置（UPLOAD_CLOUD 预处理器）。"""
    provider: str = ""  # AWS、GCP 或 DO
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    region: str = ""
    directory: str = ""  # DATE、CHAT、DATE_CHAT、CHAT_DATE 或自定义目录
    ignore_host_account: bool = False  # 不上传当前账号自己发出的媒体


class UploadQueueConfig(CamelModel):
    """上传队列的并发与限速配置。"""
    concurrency: int = 2
    interval_s: float = 1.0
    interval_cap: int = 2
    carryover: bool = True  # 窗口切换时仍在运行的任务计入新窗口
    max_tracked_files: int | None = None  # 去重注册表的容量上限，None 表示不限


class CloudEnvOverrides(BaseSettings):
    """
    云上传的环境变量覆盖。

    环境变量总是优先于配置文件中的值，例如 MEDIAFLOW_CLOUD_BUCKET。
    """
    provider: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    region: str = ""
    directory: str = ""
    ignore_host: bool = False

    class Config:
        env_prefix = "MEDIAFLOW_CLOUD_"


class Config(BaseSettings):
    """
    mediaflow 的根配置。

    根级字段不带别名，以免影响 MEDIAFLOW_ 环境变量的查找；
    配置文件中的 camelCase 根键由 loader 映射。
    """
    preprocessor: str = ""  # 要应用的预处理器名称，空表示不处理
    media_dir: str = "media"  # AUTO_DECRYPT_SAVE 的保存目录
    cloud_upload_options: CloudUploadConfig | None = None
    upload_queue: UploadQueueConfig = Field(default_factory=UploadQueueConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)

    class Config:
        env_prefix = "MEDIAFLOW_"
        env_nested_delimiter = "__"
