"""用于协调聊天通道和预处理管道的通道管理器。"""

import asyncio
from typing import Any

from loguru import logger

from mediaflow.bus.queue import MessageBus
from mediaflow.channels.base import BaseChannel
from mediaflow.config.schema import Config
from mediaflow.processors.base import PreprocessorName
from mediaflow.processors.cloud import UploadPipeline
from mediaflow.processors.registry import PreprocessorRegistry, build_registry


class ChannelManager:
    """
    管理聊天通道并在启动时装配预处理管道。

    职责：
    - 创建唯一的 UploadPipeline 和预处理器注册表
    - 初始化启用的通道
    - 启动/停止通道
    """

    def __init__(
        self,
        config: Config,
        bus: MessageBus,
        pipeline: UploadPipeline | None = None,
        registry: PreprocessorRegistry | None = None,
    ):
        self.config = config
        self.bus = bus
        self.pipeline = pipeline if pipeline is not None else UploadPipeline.from_config(config)
        self.registry = registry if registry is not None else build_registry(config, self.pipeline)
        self.channels: dict[str, BaseChannel] = {}

        self._check_preprocessor()
        self._init_channels()

    def _check_preprocessor(self) -> None:
        name = self.config.preprocessor
        if not name:
            return
        if name not in self.registry:
            valid = ", ".join(p.value for p in PreprocessorName)
            logger.warning(f"未知的预处理器 '{name}'，可选值：{valid}")
        elif name == PreprocessorName.UPLOAD_CLOUD.value and self.config.cloud_upload_options is None:
            logger.warning("已选择 UPLOAD_CLOUD，但未设置 cloudUploadOptions，媒体不会被上传")

    def _init_channels(self) -> None:
        """根据配置初始化通道。"""
        if self.config.channels.whatsapp.enabled:
            try:
                from mediaflow.channels.whatsapp import WhatsAppChannel
                self.channels["whatsapp"] = WhatsAppChannel(
                    self.config.channels.whatsapp,
                    self.bus,
                    preprocessors=self.registry,
                    preprocessor=self.config.preprocessor,
                )
                logger.info("WhatsApp 通道已启用")
            except ImportError as e:
                logger.warning(f"WhatsApp 通道不可用：{e}")

    async def _start_channel(self, name: str, channel: BaseChannel) -> None:
        """启动通道并记录任何异常。"""
        try:
            await channel.start()
        except Exception as e:
            logger.error(f"启动通道 {name} 失败：{e}")

    async def start_all(self) -> None:
        """启动所有通道。"""
        if not self.channels:
            logger.warning("未启用任何通道")
            return

        tasks = []
        for name, channel in self.channels.items():
            logger.info(f"正在启动 {name} 通道...")
            tasks.append(asyncio.create_task(self._start_channel(name, channel)))

        # 等待所有任务完成（它们应该永远运行）
        await asyncio.gather(*tasks, return_exceptions=True)

    async def stop_all(self) -> None:
        """停止所有通道。上传队列不需要关闭，会随流量减少自然排空。"""
        logger.info("正在停止所有通道...")

        for name, channel in self.channels.items():
            try:
                await channel.stop()
                logger.info(f"已停止 {name} 通道")
            except Exception as e:
                logger.error(f"停止 {name} 时出错：{e}")

    def get_channel(self, name: str) -> BaseChannel | None:
        """根据名称获取通道。"""
        return self.channels.get(name)

    def get_status(self) -> dict[str, Any]:
        """获取所有通道和上传队列的状态。"""
        return {
            "channels": {
                name: {"enabled": True, "running": channel.is_running}
                for name, channel in self.channels.items()
            },
            "upload_queue": {
                "queued": self.pipeline.queue.size,
                "running": self.pipeline.queue.pending,
                "tracked_files": len(self.pipeline.registry),
            },
        }

    @property
    def enabled_channels(self) -> list[str]:
        """获取已启用通道名称的列表。"""
        return list(self.channels.keys())
