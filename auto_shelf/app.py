"""Typer CLI entrypoint for Auto-Shelf."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from .browser import (
    BrowserSession,
    LibraryBadgeOracle,
    LongPressSimulator,
    PageItemSource,
    install_mutation_observer,
)
from .config import ConfigRepository, ShelfConfig
from .control import ControlPanel
from .logging_conf import configure_logging, default_log_path, set_console_quiet, tail_log
from .scheduler import BatchScheduler
from .ui import OperatorPrompt, StateBanner, render_config

app = typer.Typer(
    help="Auto-Shelf 命令行工具：自动将漫画添加到书架",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="配置管理命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="日志查看命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool, config_path: Path | None = None) -> AppState:
    repository = ConfigRepository(path=config_path)
    return AppState(repository=repository, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _load_config(state: AppState) -> ShelfConfig:
    try:
        return state.repository.load()
    except (ValidationError, ValueError) as exc:
        console.print(f"配置文件无效：{state.repository.path}", style="red")
        console.print(str(exc), style="dim", markup=False)
        raise typer.Exit(code=1)


async def _run_session(state: AppState, config: ShelfConfig) -> None:
    session = BrowserSession(config.browser)
    async with session:
        page = await session.open(config.page.base_url)
        scheduler = BatchScheduler(
            config.batch,
            PageItemSource(page, config.page),
            LibraryBadgeOracle(config.page),
            LongPressSimulator(page, config.page, config.batch),
        )
        scheduler.subscribe(StateBanner(console))
        if config.batch.observe_mutations:
            await install_mutation_observer(page, config.page.item_selector, scheduler.wake)
        panel = ControlPanel(scheduler)
        if config.autostart:
            panel.toggle_run()
        prompt = OperatorPrompt(
            panel,
            console,
            reload_config=lambda: state.repository.load().batch,
        )
        try:
            await prompt.serve()
        finally:
            scheduler.stop()


app.add_typer(config_app, name="config", help="查看或初始化配置文件")
app.add_typer(log_app, name="log", help="查看日志文件")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="开启调试日志", is_flag=True),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="配置文件路径（默认 config/auto_shelf.yaml）"
    ),
) -> None:
    ctx.obj = build_state(verbose, config_path)


@app.command("run", help="打开书库页面并进入交互式控制台。")
def run(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="覆盖配置中的页面地址。"),
    headless: Optional[bool] = typer.Option(
        None, "--headless/--headed", help="覆盖配置中的无头模式设置。"
    ),
    autostart: bool = typer.Option(
        False, "--autostart", help="页面加载后立即开始批量处理。", is_flag=True
    ),
) -> None:
    state = _get_state(ctx)
    config = _load_config(state)
    overrides: dict[str, object] = {}
    if url:
        overrides["page"] = config.page.model_copy(update={"base_url": url})
    if headless is not None:
        overrides["browser"] = config.browser.model_copy(update={"headless": headless})
    if autostart:
        overrides["autostart"] = True
    if overrides:
        config = config.model_copy(update=overrides)
    configure_logging(verbose=state.verbose or config.batch.verbose_logging)
    set_console_quiet(not state.verbose)
    console.print(f"正在打开 {config.page.base_url}", style="dim")
    try:
        asyncio.run(_run_session(state, config))
    except KeyboardInterrupt:
        console.print("已中断。", style="yellow")
    except RuntimeError as exc:
        console.print(f"浏览器会话失败：{exc}", style="red")
        raise typer.Exit(code=1)


@config_app.command("show", help="显示当前生效的配置。")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = _load_config(state)
    payload = config.model_dump(mode="json")
    rows: dict[str, object] = {"autostart": payload.pop("autostart")}
    for section, values in payload.items():
        for key, value in values.items():
            rows[f"{section}.{key}"] = value
    console.print(render_config(rows))
    console.print(f"配置文件：{state.repository.path}", style="dim")


@config_app.command("init", help="写入默认配置文件。")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="覆盖已存在的配置文件。", is_flag=True),
) -> None:
    state = _get_state(ctx)
    if state.repository.exists() and not force:
        console.print(f"配置文件已存在：{state.repository.path}（使用 --force 覆盖）", style="yellow")
        raise typer.Exit(code=1)
    path = state.repository.save(ShelfConfig())
    console.print(f"已写入默认配置：{path}", style="green")


@log_app.command("show", help="查看应用日志的最后若干行。")
def log_show(
    tail: int = typer.Option(100, "--tail", help="查看最近 N 行"),
) -> None:
    path = default_log_path()
    lines = tail_log(path, tail)
    if not lines:
        console.print(f"暂无日志：{path}", style="dim")
        return
    for line in lines:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
