"""mediaflow 的配置模块。"""

from mediaflow.config.loader import get_config_path, load_config
from mediaflow.config.schema import CloudEnvOverrides, CloudUploadConfig, Config

__all__ = ["Config", "CloudUploadConfig", "CloudEnvOverrides", "load_config", "get_config_path"]
