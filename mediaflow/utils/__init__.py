"""mediaflow 的实用工具。"""

from mediaflow.utils.helpers import decode_data_url, ensure_dir, get_data_path, mime_extension

__all__ = ["ensure_dir", "get_data_path", "mime_extension", "decode_data_url"]
