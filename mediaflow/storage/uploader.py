"""兼容 S3 的云存储上传器。"""

import asyncio
from enum import Enum
from typing import Any, Protocol

import boto3
from loguru import logger

from mediaflow.errors import UploadTransportError
from mediaflow.storage.options import UploadOptions
from mediaflow.utils.helpers import decode_data_url


class CloudProvider(str, Enum):
    """支持的存储提供商。"""
    AWS = "AWS"
    GCP = "GCP"
    DO = "DO"  # DigitalOcean Spaces


class BlobUploader(Protocol):
    """上传能力：把文件放到存储桶，并计算其公开 URL。"""

    async def upload(self, options: UploadOptions) -> None:
        ...

    def compute_url(self, options: UploadOptions) -> str:
        ...


def _provider(options: UploadOptions) -> CloudProvider:
    try:
        return CloudProvider(options.provider.upper())
    except ValueError:
        raise ValueError(f"不支持的存储提供商：{options.provider}") from None


def endpoint_url(provider: CloudProvider, region: str) -> str | None:
    """获取提供商的 S3 兼容端点，AWS 返回 None 以使用 boto3 默认值。"""
    if provider is CloudProvider.GCP:
        return "https://storage.googleapis.com"
    if provider is CloudProvider.DO:
        return f"https://{region or 'nyc3'}.digitaloceanspaces.com"
    return None


def compute_url(options: UploadOptions) -> str:
    """
    计算文件在目标位置的确定性 URL。

    纯函数：不发出任何网络请求，无论上传是否发生结果都相同。
    """
    provider = _provider(options)
    if provider is CloudProvider.GCP:
        return f"https://storage.googleapis.com/{options.bucket}/{options.key}"
    if provider is CloudProvider.DO:
        return f"https://{options.bucket}.{options.region or 'nyc3'}.digitaloceanspaces.com/{options.key}"
    if options.region:
        return f"https://{options.bucket}.s3.{options.region}.amazonaws.com/{options.key}"
    return f"https://{options.bucket}.s3.amazonaws.com/{options.key}"


class S3Uploader:
    """
    使用 boto3 的上传器，适用于所有兼容 S3 的提供商。

    boto3 是同步的，创建客户端和 put_object 都在工作线程中运行以免阻塞事件循环。
    """

    def __init__(self):
        self._clients: dict[tuple[str, str, str], Any] = {}

    def _client(self, options: UploadOptions) -> Any:
        provider = _provider(options)
        cache_key = (provider.value, options.region, options.access_key_id)
        if cache_key not in self._clients:
            self._clients[cache_key] = boto3.client(
                "s3",
                region_name=options.region or None,
                endpoint_url=endpoint_url(provider, options.region),
                aws_access_key_id=options.access_key_id,
                aws_secret_access_key=options.secret_access_key,
            )
        return self._clients[cache_key]

    def _put_object(self, options: UploadOptions, body: bytes, content_type: str) -> None:
        self._client(options).put_object(
            Bucket=options.bucket,
            Key=options.key,
            Body=body,
            ContentType=content_type,
        )

    async def upload(self, options: UploadOptions) -> None:
        """
        上传 options.file 中的 data URL。

        异常:
            UploadTransportError: 如果解码或网络上传失败。
        """
        try:
            body, content_type = decode_data_url(options.file)
        except ValueError as e:
            raise UploadTransportError(f"无效的媒体数据：{e}") from e

        try:
            await asyncio.to_thread(self._put_object, options, body, content_type)
        except Exception as e:
            raise UploadTransportError(f"上传 {options.key} 到 {options.bucket} 失败：{e}") from e
        logger.info(f"已上传 {options.key} 到 {options.provider}:{options.bucket}")

    def compute_url(self, options: UploadOptions) -> str:
        return compute_url(options)
