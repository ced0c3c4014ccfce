"""可插拔的消息预处理器。"""

from mediaflow.processors.base import MediaDecryptor, MessagePreprocessor, PreprocessorName
from mediaflow.processors.cloud import UploadOutcome, UploadPipeline
from mediaflow.processors.registry import PreprocessorRegistry, build_registry

__all__ = [
    "MediaDecryptor",
    "MessagePreprocessor",
    "PreprocessorName",
    "PreprocessorRegistry",
    "UploadOutcome",
    "UploadPipeline",
    "build_registry",
]
