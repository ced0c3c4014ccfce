"""上传选项的组装与校验。"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from mediaflow.bus.events import Message
from mediaflow.config.schema import CloudEnvOverrides, CloudUploadConfig
from mediaflow.errors import MissingConfigError, MissingFieldError
from mediaflow.storage.directory import resolve_directory

_ENV_PREFIX = "MEDIAFLOW_CLOUD_"

# 校验顺序：遇到第一个缺失字段即停止
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("access_key_id", "accessKeyId"),
    ("secret_access_key", "secretAccessKey"),
    ("bucket", "bucket"),
    ("provider", "provider"),
)


@dataclass(frozen=True)
class UploadOptions:
    """一次上传所需的全部参数。"""
    provider: str
    filename: str
    access_key_id: str
    secret_access_key: str
    bucket: str
    region: str = ""
    directory: str | None = None
    file: str = ""  # 解密后的 data URL

    @property
    def key(self) -> str:
        """对象在存储桶中的键。"""
        if self.directory:
            return f"{self.directory.strip('/')}/{self.filename}"
        return self.filename

    def with_file(self, file: str) -> "UploadOptions":
        """返回附带文件内容的副本。"""
        return replace(self, file=file)


def _pick(env_value: str, config_value: str) -> str:
    return env_value or config_value


def build_upload_options(
    message: Message,
    config: CloudUploadConfig | None,
    env: CloudEnvOverrides | None = None,
    now: datetime | None = None,
) -> UploadOptions:
    """
    为一条消息组装并校验上传选项。

    环境变量覆盖总是优先于配置值。

    参数:
        message: 要上传其媒体的消息。
        config: 配置文件中的 cloudUploadOptions。
        env: 环境变量覆盖；为 None 时从当前环境读取。
        now: 用于日期目录策略的时间，默认为当前 UTC 时间。

    返回:
        尚未附带文件内容的 UploadOptions。

    异常:
        MissingConfigError: 如果没有配置云上传。
        MissingFieldError: 第一个缺失的必填字段。
    """
    if config is None:
        raise MissingConfigError()
    env = env if env is not None else CloudEnvOverrides()

    directory = None
    strategy = _pick(env.directory, config.directory)
    if strategy:
        directory = resolve_directory(strategy, message, now or datetime.now(timezone.utc))

    opts = UploadOptions(
        provider=_pick(env.provider, config.provider),
        filename=message.media_filename,
        access_key_id=_pick(env.access_key_id, config.access_key_id),
        secret_access_key=_pick(env.secret_access_key, config.secret_access_key),
        bucket=_pick(env.bucket, config.bucket),
        region=_pick(env.region, config.region),
        directory=directory,
    )

    for attr, label in REQUIRED_FIELDS:
        if not getattr(opts, attr):
            raise MissingFieldError(label, f"{_ENV_PREFIX}{attr.upper()}")

    return opts


def should_ignore_host(message: Message, config: CloudUploadConfig | None, env: CloudEnvOverrides | None = None) -> bool:
    """当前账号自己发出的消息是否应跳过上传。"""
    if not message.from_me:
        return False
    env = env if env is not None else CloudEnvOverrides()
    return bool(env.ignore_host or (config and config.ignore_host_account))
