"""使用 Node.js 桥接的 WhatsApp 通道实现。"""

import asyncio
import json
from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from mediaflow.bus.events import LegacyMedia, Message
from mediaflow.bus.queue import MessageBus
from mediaflow.channels.base import BaseChannel
from mediaflow.config.schema import WhatsAppConfig
from mediaflow.processors.registry import PreprocessorRegistry


def message_from_bridge(data: dict[str, Any]) -> Message:
    """把桥接的 message 事件转换为 Message。"""
    chat_id = data.get("from") or data.get("chatId", "")
    sender = data.get("sender") or chat_id
    media_url = data.get("mediaUrl") or data.get("deprecatedMms3Url")
    timestamp = data.get("timestamp")
    return Message(
        id=data.get("id", ""),
        chat_id=chat_id,
        sender_id=sender.split("@")[0] if "@" in sender else sender,
        body=data.get("body", ""),
        content=data.get("content", ""),
        mimetype=data.get("mimetype", ""),
        from_me=bool(data.get("fromMe", False)),
        timestamp=datetime.fromtimestamp(timestamp) if timestamp else datetime.now(),
        media=LegacyMedia(url=media_url) if media_url else None,
        metadata={"is_group": data.get("isGroup", False)},
    )


class WhatsAppChannel(BaseChannel):
    """
    连接到 Node.js 桥接的 WhatsApp 通道。

    消息事件通过 WebSocket 接收；媒体解密通过桥接的 HTTP 接口完成。
    """

    name = "whatsapp"

    def __init__(
        self,
        config: WhatsAppConfig,
        bus: MessageBus,
        preprocessors: PreprocessorRegistry | None = None,
        preprocessor: str = "",
    ):
        super().__init__(config, bus, preprocessors, preprocessor)
        self.config: WhatsAppConfig = config
        self._ws = None
        self._connected = False

    async def start(self) -> None:
        """通过连接到桥接启动 WhatsApp 通道。"""
        import websockets

        bridge_url = self.config.bridge_url

        logger.info(f"正在连接到位于 {bridge_url} 的 WhatsApp 桥接...")

        self._running = True

        while self._running:
            try:
                async with websockets.connect(bridge_url) as ws:
                    self._ws = ws
                    self._connected = True
                    logger.info("已连接到 WhatsApp 桥接")

                    async for message in ws:
                        try:
                            await self._handle_bridge_message(message)
                        except Exception as e:
                            logger.error(f"处理桥接消息时出错：{e}")

            except asyncio.CancelledError:
                break
            except Exception as e:
                self._connected = False
                self._ws = None
                logger.warning(f"WhatsApp 桥接连接错误：{e}")

                if self._running:
                    logger.info("5 秒后重新连接...")
                    await asyncio.sleep(5)

    async def stop(self) -> None:
        """停止 WhatsApp 通道。"""
        self._running = False
        self._connected = False

        if self._ws:
            await self._ws.close()
            self._ws = None

    async def decrypt_media(self, message: Message) -> str:
        """
        请求桥接解密消息媒体。

        异常:
            httpx.HTTPError: 如果桥接请求失败。
            ValueError: 如果桥接没有返回 data URL。
        """
        async with httpx.AsyncClient(base_url=self.config.bridge_http_url) as client:
            response = await client.post(
                "/decrypt",
                json={
                    "id": message.id,
                    "mediaUrl": message.media.url if message.media else None,
                    "mimetype": message.mimetype,
                },
                timeout=60.0,
            )
            response.raise_for_status()
            data_url = response.json().get("dataUrl")
        if not data_url:
            raise ValueError(f"桥接没有返回消息 {message.id} 的媒体")
        return data_url

    async def _handle_bridge_message(self, raw: str) -> None:
        """处理来自桥接的消息。"""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"来自桥接的无效 JSON：{raw[:100]}")
            return

        msg_type = data.get("type")

        if msg_type == "message":
            await self._handle_message(message_from_bridge(data))

        elif msg_type == "status":
            status = data.get("status")
            logger.info(f"WhatsApp 状态：{status}")

            if status == "connected":
                self._connected = True
            elif status == "disconnected":
                self._connected = False

        elif msg_type == "qr":
            logger.info("在桥接终端中扫描 QR 码以连接 WhatsApp")

        elif msg_type == "error":
            logger.error(f"WhatsApp 桥接错误：{data.get('error')}")
