"""预处理管道的错误类型。

这些错误都不会传播到消息管道的调用方：每一种都会被记录日志，
然后消息原样（或部分标注后）返回。
"""


class PreprocessorError(Exception):
    """所有预处理错误的基类。"""


class MissingConfigError(PreprocessorError):
    """没有配置云上传。"""

    def __init__(self, message: str = "未配置 cloudUploadOptions"):
        super().__init__(message)


class MissingFieldError(PreprocessorError):
    """上传选项缺少必填字段。"""

    def __init__(self, field: str, env_var: str):
        self.field = field
        self.env_var = env_var
        super().__init__(f"上传错误：未提供 {field}。{self.hint}")

    @property
    def hint(self) -> str:
        return f"如果您在使用 CLI，请设置环境变量 {self.env_var}"


class LocalWriteError(PreprocessorError):
    """解密后的媒体无法写入本地磁盘。"""


class EnqueueError(PreprocessorError):
    """上传任务无法加入队列。"""


class UploadTransportError(PreprocessorError):
    """向存储提供商的网络上传失败。"""
