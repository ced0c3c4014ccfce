"""UPLOAD_CLOUD 预处理器：限速、去重的云上传管道。"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from loguru import logger

from mediaflow.bus.events import Message
from mediaflow.config.schema import CloudEnvOverrides, CloudUploadConfig, Config
from mediaflow.errors import EnqueueError, MissingConfigError, MissingFieldError
from mediaflow.processors.base import MediaDecryptor
from mediaflow.storage.dedup import DedupRegistry
from mediaflow.storage.options import UploadOptions, build_upload_options, should_ignore_host
from mediaflow.storage.queue import RateLimitedQueue
from mediaflow.storage.uploader import BlobUploader, S3Uploader


@dataclass
class UploadOutcome:
    """一次上传的结果。失败只记录，从不作为异常传播。"""
    key: str
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadPipeline:
    """
    拥有去重注册表和上传队列的云上传管道。

    在启动时构造一次，并传给消息管道。每个进程一个实例：
    注册表和队列都只在进程内有效，重启后去重状态丢失。

    流程：
    1. 非媒体消息、被忽略的本账号消息或未配置上传时原样返回
    2. 在任何挂起点之前认领文件名
    3. 解密媒体，组装并校验上传选项
    4. 计算文件的确定性 URL
    5. 认领成功时把上传加入队列，否则假定文件已上传或正在上传
    6. 返回附带 cloud_url 的消息副本
    """

    def __init__(
        self,
        config: CloudUploadConfig | None,
        uploader: BlobUploader | None = None,
        queue: RateLimitedQueue | None = None,
        registry: DedupRegistry | None = None,
        env_loader: Callable[[], CloudEnvOverrides] = CloudEnvOverrides,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.uploader = uploader if uploader is not None else S3Uploader()
        self.queue = queue if queue is not None else RateLimitedQueue()
        self.registry = registry if registry is not None else DedupRegistry()
        self._env_loader = env_loader
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config, uploader: BlobUploader | None = None) -> "UploadPipeline":
        """根据根配置创建管道和它的队列、注册表。"""
        q = config.upload_queue
        return cls(
            config.cloud_upload_options,
            uploader=uploader,
            queue=RateLimitedQueue(
                concurrency=q.concurrency,
                interval=q.interval_s,
                interval_cap=q.interval_cap,
                carryover=q.carryover,
            ),
            registry=DedupRegistry(max_entries=q.max_tracked_files),
        )

    async def process(self, message: Message, client: MediaDecryptor) -> Message:
        """UPLOAD_CLOUD 预处理器。"""
        if not message.is_legacy_media:
            return message

        env = self._env_loader()
        if should_ignore_host(message, self.config, env):
            logger.debug(f"跳过本账号发出的媒体 {message.id}")
            return message

        if self.config is None:
            logger.warning(f"{MissingConfigError()}，跳过上传 {message.id}")
            return message

        filename = message.media_filename
        claimed = self.registry.try_claim(filename)

        try:
            media_data = await client.decrypt_media(message)
        except Exception:
            self._release(filename, claimed)
            raise

        try:
            opts = build_upload_options(message, self.config, env, self._clock()).with_file(media_data)
            url = self.uploader.compute_url(opts)
        except MissingFieldError as e:
            self._release(filename, claimed)
            logger.error(f"{e}")
            return message
        except ValueError as e:
            self._release(filename, claimed)
            logger.error(f"上传错误：{e}")
            return message

        if claimed:
            try:
                await self.queue.add(partial(self._upload, opts))
            except Exception as e:
                self._release(filename, claimed)
                error = EnqueueError(f"无法将 {filename} 加入上传队列：{e}")
                logger.error(f"{error}")
                return message
        else:
            logger.debug(f"{filename} 已上传或正在上传，跳过")

        return replace(message, cloud_url=url)

    async def _upload(self, options: UploadOptions) -> UploadOutcome:
        try:
            await self.uploader.upload(options)
        except Exception as e:
            logger.warning(f"上传 {options.key} 失败，不会重试：{e}")
            return UploadOutcome(options.key, error=e)
        return UploadOutcome(options.key)

    def _release(self, filename: str, claimed: bool) -> None:
        if claimed:
            self.registry.release(filename)
