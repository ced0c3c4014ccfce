import asyncio
from datetime import datetime, timezone

from mediaflow.config.schema import CloudEnvOverrides, Config
from mediaflow.processors.cloud import UploadPipeline
from mediaflow.storage.dedup import DedupRegistry
from tests.helpers import (
    DATA_URL,
    FakeDecryptor,
    FakeUploader,
    RecordingQueue,
    make_cloud_config,
    make_message,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def make_pipeline(config=None, uploader=None, queue=None, **kwargs) -> UploadPipeline:
    return UploadPipeline(
        config,
        uploader=uploader if uploader is not None else FakeUploader(),
        queue=queue if queue is not None else RecordingQueue(interval=0),
        registry=DedupRegistry(),
        clock=lambda: NOW,
        **kwargs,
    )


# 测试非媒体消息原样返回
async def test_non_media_passthrough() -> None:
    decryptor = FakeDecryptor()
    pipeline = make_pipeline(make_cloud_config())
    msg = make_message(legacy=False)
    assert await pipeline.process(msg, decryptor) is msg
    assert decryptor.calls == []


# 场景 1：忽略本账号发出的媒体
async def test_ignore_host_account() -> None:
    decryptor = FakeDecryptor()
    queue = RecordingQueue()
    pipeline = make_pipeline(make_cloud_config(ignore_host_account=True), queue=queue)
    msg = make_message(from_me=True)

    result = await pipeline.process(msg, decryptor)
    assert result == msg
    assert decryptor.calls == []
    assert queue.added == 0


# 测试环境变量强制忽略本账号
async def test_ignore_host_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MEDIAFLOW_CLOUD_IGNORE_HOST", "true")
    decryptor = FakeDecryptor()
    pipeline = make_pipeline(make_cloud_config())
    msg = make_message(from_me=True)
    assert await pipeline.process(msg, decryptor) == msg
    assert decryptor.calls == []


# 测试未配置云上传时原样返回
async def test_not_configured() -> None:
    decryptor = FakeDecryptor()
    queue = RecordingQueue()
    pipeline = make_pipeline(None, queue=queue)
    msg = make_message()
    assert await pipeline.process(msg, decryptor) == msg
    assert decryptor.calls == []
    assert queue.added == 0


# 场景 2：按聊天分目录上传并附上 URL
async def test_upload_by_chat() -> None:
    uploader = FakeUploader()
    queue = RecordingQueue(interval=0)
    pipeline = make_pipeline(make_cloud_config(directory="CHAT"), uploader=uploader, queue=queue)
    msg = make_message(chat_id="12345@g.us")

    result = await pipeline.process(msg, FakeDecryptor())
    await asyncio.wait_for(queue.on_idle(), timeout=2)

    assert result.cloud_url == "https://media-bucket.s3.eu-west-1.amazonaws.com/12345/ABC123.jpeg"
    assert result.id == msg.id
    assert msg.cloud_url is None
    assert queue.added == 1
    [opts] = uploader.uploads
    assert opts.directory == "12345"
    assert opts.file == DATA_URL
    outcome = await queue.futures[0]
    assert outcome.ok


# 场景 3：并发处理相同文件名只入队一次
async def test_concurrent_same_filename_enqueued_once() -> None:
    queue = RecordingQueue(interval=0)
    pipeline = make_pipeline(make_cloud_config(), queue=queue)
    first = make_message(id="false_111@c.us_DUP", chat_id="111@c.us")
    second = make_message(id="false_222@c.us_DUP", chat_id="222@c.us")

    a, b = await asyncio.gather(
        pipeline.process(first, FakeDecryptor()),
        pipeline.process(second, FakeDecryptor()),
    )
    assert queue.added == 1
    assert a.cloud_url == b.cloud_url == "https://media-bucket.s3.eu-west-1.amazonaws.com/DUP.jpeg"


# 测试已上传的文件仍然附上 URL
async def test_repeat_message_gets_url_without_upload() -> None:
    uploader = FakeUploader()
    queue = RecordingQueue(interval=0)
    pipeline = make_pipeline(make_cloud_config(), uploader=uploader, queue=queue)
    msg = make_message()

    first = await pipeline.process(msg, FakeDecryptor())
    second = await pipeline.process(msg, FakeDecryptor())
    await asyncio.wait_for(queue.on_idle(), timeout=2)
    assert first.cloud_url == second.cloud_url
    assert len(uploader.uploads) == 1


# 场景 4：缺少 bucket 时解密仍发生，但不入队
async def test_missing_bucket() -> None:
    decryptor = FakeDecryptor()
    queue = RecordingQueue()
    pipeline = make_pipeline(make_cloud_config(bucket=""), queue=queue)
    msg = make_message()

    result = await pipeline.process(msg, decryptor)
    assert result == msg
    assert result.cloud_url is None
    assert decryptor.calls == [msg.id]
    assert queue.added == 0
    assert msg.media_filename not in pipeline.registry


# 测试环境变量覆盖的 bucket 出现在 URL 中
async def test_env_override_bucket_in_url() -> None:
    pipeline = make_pipeline(
        make_cloud_config(),
        env_loader=lambda: CloudEnvOverrides(bucket="env-bucket"),
    )
    result = await pipeline.process(make_message(), FakeDecryptor())
    assert result.cloud_url == "https://env-bucket.s3.eu-west-1.amazonaws.com/ABC123.jpeg"


# 测试入队失败时不附上 URL 并释放认领
async def test_enqueue_failure() -> None:
    pipeline = make_pipeline(make_cloud_config(), queue=RecordingQueue(fail=True))
    msg = make_message()

    result = await pipeline.process(msg, FakeDecryptor())
    assert result == msg
    assert result.cloud_url is None
    assert msg.media_filename not in pipeline.registry


# 测试上传失败被吞掉，消息仍带有 URL
async def test_upload_failure_is_swallowed() -> None:
    queue = RecordingQueue(interval=0)
    pipeline = make_pipeline(make_cloud_config(), uploader=FakeUploader(fail=True), queue=queue)

    result = await pipeline.process(make_message(), FakeDecryptor())
    await asyncio.wait_for(queue.on_idle(), timeout=2)
    assert result.cloud_url is not None
    outcome = await queue.futures[0]
    assert not outcome.ok
    assert "连接被拒绝" in str(outcome.error)


# 测试不支持的提供商时原样返回
async def test_unsupported_provider() -> None:
    queue = RecordingQueue()
    pipeline = make_pipeline(make_cloud_config(provider="FTP"), queue=queue)
    msg = make_message()
    assert await pipeline.process(msg, FakeDecryptor()) == msg
    assert queue.added == 0


# 测试解密失败时释放认领并向上抛出
async def test_decrypt_failure_releases_claim() -> None:
    pipeline = make_pipeline(make_cloud_config())
    msg = make_message()
    try:
        await pipeline.process(msg, FakeDecryptor(fail=True))
    except RuntimeError:
        pass
    else:
        raise AssertionError("解密错误应该向上传播")
    assert msg.media_filename not in pipeline.registry


# 测试从根配置构造队列和注册表
def test_from_config() -> None:
    config = Config(cloud_upload_options=make_cloud_config())
    config.upload_queue.concurrency = 3
    config.upload_queue.max_tracked_files = 10
    pipeline = UploadPipeline.from_config(config, uploader=FakeUploader())
    assert pipeline.queue.concurrency == 3
    assert pipeline.queue.interval == 1.0
    assert pipeline.queue.interval_cap == 2
    assert pipeline.registry.max_entries == 10


# 测试注入的协作者即使为空也被原样使用
def test_injected_collaborators_are_used() -> None:
    uploader = FakeUploader()
    queue = RecordingQueue()
    registry = DedupRegistry(max_entries=1)
    pipeline = UploadPipeline(make_cloud_config(), uploader=uploader, queue=queue, registry=registry)
    assert pipeline.uploader is uploader
    assert pipeline.queue is queue
    assert pipeline.registry is registry


# 测试根配置中的 maxTrackedFiles 对注册表生效
def test_from_config_caps_registry() -> None:
    config = Config(cloud_upload_options=make_cloud_config())
    config.upload_queue.max_tracked_files = 1
    pipeline = UploadPipeline.from_config(config, uploader=FakeUploader())
    for i in range(5):
        assert pipeline.registry.try_claim(f"file{i}.jpeg")
    assert len(pipeline.registry) == 1


# 测试解密失败与并发的同名消息：后到者拿到 URL，释放后的下一条消息重新上传
async def test_decrypt_failure_during_concurrent_claim() -> None:
    uploader = FakeUploader()
    queue = RecordingQueue(interval=0)
    pipeline = make_pipeline(make_cloud_config(), uploader=uploader, queue=queue)
    msg = make_message()

    first, second = await asyncio.gather(
        pipeline.process(msg, FakeDecryptor(fail=True)),
        pipeline.process(msg, FakeDecryptor()),
        return_exceptions=True,
    )
    assert isinstance(first, RuntimeError)
    assert second.cloud_url is not None
    assert queue.added == 0
    assert msg.media_filename not in pipeline.registry

    third = await pipeline.process(msg, FakeDecryptor())
    await asyncio.wait_for(queue.on_idle(), timeout=2)
    assert third.cloud_url == second.cloud_url
    assert queue.added == 1
    assert len(uploader.uploads) == 1
