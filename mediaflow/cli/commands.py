"""mediaflow 的 CLI 命令。"""

import asyncio
import sys
from datetime import datetime, timezone

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from mediaflow import __logo__, __version__

app = typer.Typer(
    name="mediaflow",
    help=f"{__logo__} mediaflow - 聊天消息媒体预处理管道",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} mediaflow v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """mediaflow - 聊天消息媒体预处理管道。"""
    pass


def _mask(secret: str) -> str:
    if not secret:
        return "[dim]未设置[/dim]"
    return f"{secret[:4]}..." if len(secret) > 4 else "****"


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """初始化 mediaflow 配置。"""
    from mediaflow.config.loader import get_config_path, save_config
    from mediaflow.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]配置已存在于 {config_path}[/yellow]")
        if not typer.confirm("覆盖？"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] 已在 {config_path} 创建配置")

    console.print(f"\n{__logo__} mediaflow 已就绪！")
    console.print("\n后续步骤：")
    console.print("  1. 在 [cyan]~/.mediaflow/config.json[/cyan] 中设置 preprocessor")
    console.print("  2. 使用 UPLOAD_CLOUD 时填写 cloudUploadOptions，或设置 MEDIAFLOW_CLOUD_* 环境变量")
    console.print("  3. 启动：[cyan]mediaflow gateway[/cyan]")


# ============================================================================
# Preprocessors
# ============================================================================


@app.command()
def processors():
    """列出可用的预处理器。"""
    from mediaflow.config.loader import load_config
    from mediaflow.processors.base import PreprocessorName

    config = load_config()

    table = Table(title="预处理器")
    table.add_column("名称", style="cyan")
    table.add_column("已选择")

    for name in PreprocessorName:
        selected = "[green]✓[/green]" if config.preprocessor == name.value else ""
        table.add_row(name.value, selected)

    console.print(table)


@app.command("resolve-dir")
def resolve_dir(
    strategy: str = typer.Argument(..., help="DATE、CHAT、DATE_CHAT、CHAT_DATE 或自定义目录"),
    chat_id: str = typer.Argument(..., help="聊天地址，例如 12345@g.us"),
):
    """显示目录策略在今天解析出的存储路径。"""
    from mediaflow.bus.events import Message
    from mediaflow.storage.directory import resolve_directory

    message = Message(id="", chat_id=chat_id)
    console.print(resolve_directory(strategy, message, datetime.now(timezone.utc)))


# ============================================================================
# Gateway
# ============================================================================


@app.command()
def gateway(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="详细输出"),
):
    """启动通道并处理传入的消息。"""
    from mediaflow.bus.queue import MessageBus
    from mediaflow.channels.manager import ChannelManager
    from mediaflow.config.loader import load_config

    if verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")

    config = load_config()
    bus = MessageBus()
    channels = ChannelManager(config, bus)

    console.print(f"{__logo__} 正在启动 mediaflow 网关...")
    if channels.enabled_channels:
        console.print(f"[green]✓[/green] 已启用通道：{', '.join(channels.enabled_channels)}")
    else:
        console.print("[yellow]警告：未启用任何通道[/yellow]")
    console.print(f"[green]✓[/green] 预处理器：{config.preprocessor or '无'}")

    async def consume():
        while True:
            msg = await bus.consume()
            logger.info(
                f"消息 {msg.id} 来自 {msg.chat_id}"
                + (f"，cloud_url={msg.cloud_url}" if msg.cloud_url else "")
                + (f"，file_path={msg.file_path}" if msg.file_path else "")
            )

    async def run():
        try:
            await asyncio.gather(consume(), channels.start_all())
        except KeyboardInterrupt:
            console.print("\n正在关闭...")
            await channels.stop_all()

    asyncio.run(run())


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status():
    """显示 mediaflow 状态。"""
    from mediaflow.config.loader import get_config_path, load_config
    from mediaflow.config.schema import CloudEnvOverrides

    config_path = get_config_path()
    config = load_config()

    console.print(f"{__logo__} mediaflow 状态\n")

    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Preprocessor: {config.preprocessor or '[dim]未设置[/dim]'}")

    cloud = config.cloud_upload_options
    env = CloudEnvOverrides()
    if cloud is None:
        console.print("Cloud upload: [dim]未配置[/dim]")

    rows = [
        ("provider", cloud.provider if cloud else "", env.provider),
        ("accessKeyId", _mask(cloud.access_key_id) if cloud else "", _mask(env.access_key_id) if env.access_key_id else ""),
        ("secretAccessKey", _mask(cloud.secret_access_key) if cloud else "", _mask(env.secret_access_key) if env.secret_access_key else ""),
        ("bucket", cloud.bucket if cloud else "", env.bucket),
        ("region", cloud.region if cloud else "", env.region),
        ("directory", cloud.directory if cloud else "", env.directory),
        ("ignoreHostAccount", str(cloud.ignore_host_account) if cloud else "", "True" if env.ignore_host else ""),
    ]
    # 未配置 cloudUploadOptions 时也显示已设置的环境变量覆盖
    if cloud is not None or any(r[2] for r in rows):
        table = Table(title="cloudUploadOptions")
        table.add_column("字段", style="cyan")
        table.add_column("配置")
        table.add_column("环境变量覆盖")
        for row in rows:
            table.add_row(*[v or "" for v in row])
        console.print(table)

    q = config.upload_queue
    console.print(
        f"Upload queue: concurrency={q.concurrency}, interval={q.interval_s}s, "
        f"intervalCap={q.interval_cap}, carryover={q.carryover}"
    )


if __name__ == "__main__":
    app()
