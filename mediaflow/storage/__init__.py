"""云存储：目录策略、上传选项、去重、限速队列和上传器。"""

from mediaflow.storage.dedup import DedupRegistry
from mediaflow.storage.directory import DirectoryStrategy, resolve_directory
from mediaflow.storage.options import UploadOptions, build_upload_options
from mediaflow.storage.queue import RateLimitedQueue
from mediaflow.storage.uploader import BlobUploader, CloudProvider, S3Uploader, compute_url

__all__ = [
    "DedupRegistry",
    "DirectoryStrategy",
    "resolve_directory",
    "UploadOptions",
    "build_upload_options",
    "RateLimitedQueue",
    "BlobUploader",
    "CloudProvider",
    "S3Uploader",
    "compute_url",
]
