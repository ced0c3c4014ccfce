import pytest

from mediaflow.utils.helpers import decode_data_url, mime_extension
from tests.helpers import make_message


# 测试 MIME 类型到扩展名的转换
@pytest.mark.parametrize(
    "mimetype, expected",
    [
        ("image/jpeg", "jpeg"),
        ("audio/ogg; codecs=opus", "oga"),
        ("application/pdf", "pdf"),
        ("", "bin"),
        ("application/x-does-not-exist", "bin"),
    ],
)
def test_mime_extension(mimetype, expected) -> None:
    assert mime_extension(mimetype) == expected


# 测试 data URL 解码
def test_decode_data_url() -> None:
    assert decode_data_url("data:image/png;base64,aGVsbG8=") == (b"hello", "image/png")
    assert decode_data_url("aGVsbG8=") == (b"hello", "application/octet-stream")


# 测试无效的 base64
def test_decode_data_url_invalid() -> None:
    with pytest.raises(ValueError):
        decode_data_url("data:image/png;base64,@@@")


# 测试文件名和聊天地址的派生
def test_message_derived_fields() -> None:
    msg = make_message(id="true_4477@c.us_3EB0XYZ", chat_id="4477@c.us")
    assert msg.media_filename == "3EB0XYZ.jpeg"
    assert msg.chat_address == "4477"
