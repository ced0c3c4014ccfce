"""
mediaflow - 可插拔的聊天消息媒体预处理管道
"""

__version__ = "0.1.0"
__logo__ = "📦"
