"""按名称选择消息预处理器的注册表。"""

from functools import partial

from loguru import logger

from mediaflow.bus.events import Message
from mediaflow.config.schema import Config
from mediaflow.processors.base import MediaDecryptor, MessagePreprocessor, PreprocessorName
from mediaflow.processors.basic import auto_decrypt, auto_decrypt_save, body_only, scrub
from mediaflow.processors.cloud import UploadPipeline


def _key(name: PreprocessorName | str) -> str:
    return name.value if isinstance(name, PreprocessorName) else str(name)


class PreprocessorRegistry:
    """
    消息预处理器的注册表。

    process() 是消息管道的最外层边界：预处理器抛出的任何异常都会被
    记录下来，消息原样返回，从不传播给调用方。
    """

    def __init__(self):
        self._processors: dict[str, MessagePreprocessor] = {}

    def register(self, name: PreprocessorName | str, processor: MessagePreprocessor) -> None:
        """注册一个预处理器。"""
        self._processors[_key(name)] = processor

    def unregister(self, name: PreprocessorName | str) -> None:
        """按名称注销一个预处理器。"""
        self._processors.pop(_key(name), None)

    def get(self, name: PreprocessorName | str) -> MessagePreprocessor | None:
        """按名称获取预处理器。"""
        return self._processors.get(_key(name))

    def has(self, name: PreprocessorName | str) -> bool:
        """检查预处理器是否已注册。"""
        return _key(name) in self._processors

    async def process(
        self,
        name: PreprocessorName | str,
        message: Message,
        client: MediaDecryptor,
    ) -> Message:
        """
        使用指定的预处理器处理消息。

        参数:
            name: 预处理器名称。
            message: 要处理的消息。
            client: 提供媒体解密的客户端。

        返回:
            处理后的消息；出错或名称未知时返回原消息。
        """
        processor = self._processors.get(_key(name))
        if not processor:
            logger.warning(f"未找到预处理器 '{_key(name)}'，消息原样传递")
            return message

        try:
            return await processor(message, client)
        except Exception as e:
            logger.error(f"预处理器 {_key(name)} 处理消息 {message.id} 时出错：{e}")
            return message

    @property
    def names(self) -> list[str]:
        """获取已注册预处理器名称的列表。"""
        return list(self._processors.keys())

    def __len__(self) -> int:
        return len(self._processors)

    def __contains__(self, name: PreprocessorName | str) -> bool:
        return _key(name) in self._processors


def build_registry(config: Config, pipeline: UploadPipeline | None = None) -> PreprocessorRegistry:
    """创建包含全部内置预处理器的注册表。"""
    pipeline = pipeline if pipeline is not None else UploadPipeline.from_config(config)
    registry = PreprocessorRegistry()
    registry.register(PreprocessorName.SCRUB, scrub)
    registry.register(PreprocessorName.BODY_ONLY, body_only)
    registry.register(PreprocessorName.AUTO_DECRYPT, auto_decrypt)
    registry.register(
        PreprocessorName.AUTO_DECRYPT_SAVE,
        partial(auto_decrypt_save, media_dir=config.media_dir),
    )
    registry.register(PreprocessorName.UPLOAD_CLOUD, pipeline.process)
    return registry
