import asyncio

from mediaflow.bus.events import LegacyMedia, Message
from mediaflow.config.schema import CloudUploadConfig
from mediaflow.errors import UploadTransportError
from mediaflow.storage.queue import RateLimitedQueue
from mediaflow.storage.uploader import compute_url

# "hello" 的 JPEG data URL
DATA_URL = "data:image/jpeg;base64,aGVsbG8="


def make_message(
    id: str = "false_12345@g.us_ABC123",
    chat_id: str = "12345@g.us",
    legacy: bool = True,
    **kwargs,
) -> Message:
    return Message(
        id=id,
        chat_id=chat_id,
        sender_id="12345",
        body="thumb",
        content="thumb",
        mimetype="image/jpeg",
        media=LegacyMedia(url="https://mmg.whatsapp.net/enc") if legacy else None,
        **kwargs,
    )


def make_cloud_config(**overrides) -> CloudUploadConfig:
    values = {
        "provider": "AWS",
        "access_key_id": "AKIAEXAMPLE",
        "secret_access_key": "secret",
        "bucket": "media-bucket",
        "region": "eu-west-1",
    }
    values.update(overrides)
    return CloudUploadConfig(**values)


class FakeDecryptor:
    def __init__(self, data_url: str = DATA_URL, fail: bool = False):
        self.data_url = data_url
        self.fail = fail
        self.calls: list[str] = []

    async def decrypt_media(self, message: Message) -> str:
        self.calls.append(message.id)
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("解密失败")
        return self.data_url


class FakeUploader:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    async def upload(self, options) -> None:
        self.uploads.append(options)
        await asyncio.sleep(0)
        if self.fail:
            raise UploadTransportError("连接被拒绝")

    def compute_url(self, options) -> str:
        return compute_url(options)


class RecordingQueue(RateLimitedQueue):
    def __init__(self, fail: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.fail = fail
        self.added = 0
        self.futures: list[asyncio.Future] = []

    async def add(self, task):
        self.added += 1
        if self.fail:
            raise RuntimeError("队列已关闭")
        future = await super().add(task)
        self.futures.append(future)
        return future
