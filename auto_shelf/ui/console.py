"""Rich rendering and the interactive operator prompt."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

from rich import box
from rich.console import Console
from rich.table import Table

from ..config import BatchConfig
from ..control import ControlPanel, ManualAddOutcome, StatusReport
from ..scheduler import SchedulerState

_STATE_LABELS = {
    SchedulerState.IDLE: ("空闲", "dim"),
    SchedulerState.RUNNING: ("批量处理中", "green"),
    SchedulerState.STOPPING: ("正在停止", "yellow"),
}

HELP_TEXT = (
    "命令：t 开始/停止批量 · c 清空处理记录 · s 检查状态 · a <编号> 手动添加 · "
    "cfg 查看配置 · r 重新加载配置 · h 帮助 · q 退出"
)

_ADD_MESSAGES = {
    ManualAddOutcome.ADDED: ("已添加到书架：{target}", "green"),
    ManualAddOutcome.FAILED: ("添加失败：{target}", "red"),
    ManualAddOutcome.NOT_FOUND: ("页面上没有找到：{target}", "yellow"),
    ManualAddOutcome.ALREADY_PROCESSED: ("已处理过，跳过：{target}", "dim"),
    ManualAddOutcome.IN_LIBRARY: ("已在书架中：{target}", "dim"),
}


def render_status(report: StatusReport) -> Table:
    label, style = _STATE_LABELS[report.state]
    table = Table(title="当前状态", box=box.SIMPLE_HEAD, show_header=False, pad_edge=False)
    table.add_column("项目", style="dim")
    table.add_column("数值", justify="right")
    table.add_row("调度状态", f"[{style}]{label}[/{style}]")
    table.add_row("漫画总数", str(report.total))
    table.add_row("已在书架中", str(report.members))
    table.add_row("已处理", str(report.processed))
    table.add_row("待处理", str(report.pending))
    table.add_row("处理记录", str(report.dedup_size))
    if report.error:
        table.add_row("[red]扫描失败[/red]", report.error)
    return table


def render_config(payload: Mapping[str, Any]) -> Table:
    table = Table(title="运行配置", box=box.SIMPLE_HEAD)
    table.add_column("选项", style="cyan", no_wrap=True)
    table.add_column("值", style="green", overflow="fold")
    for key, value in payload.items():
        if isinstance(value, Mapping):
            value = ", ".join(f"{inner}={item}" for inner, item in value.items())
        elif value is None:
            value = "-"
        table.add_row(str(key), str(value))
    return table


class StateBanner:
    """Scheduler listener echoing state transitions to the terminal."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def __call__(self, state: SchedulerState) -> None:
        if state is SchedulerState.STOPPING:
            return
        label, style = _STATE_LABELS[state]
        self.console.print(f"[{style}]● {label}[/{style}]")


class OperatorPrompt:
    """Read operator commands without blocking the event loop."""

    def __init__(
        self,
        panel: ControlPanel,
        console: Console,
        read_line: Callable[[str], str] | None = None,
        reload_config: Callable[[], BatchConfig] | None = None,
    ) -> None:
        self.panel = panel
        self.console = console
        self.read_line = read_line or console.input
        self.reload_config = reload_config

    async def serve(self) -> None:
        self.console.print(HELP_TEXT, style="dim")
        while True:
            try:
                line = await asyncio.to_thread(self.read_line, "> ")
            except (EOFError, KeyboardInterrupt):
                break
            if not await self.handle(line):
                break

    async def handle(self, line: str) -> bool:
        """Run one command; return False when the operator asked to quit."""

        parts = line.strip().split(maxsplit=1)
        if not parts:
            return True
        command = parts[0].lower()
        argument = parts[1] if len(parts) > 1 else ""
        if command in {"q", "quit", "exit"}:
            return False
        if command in {"t", "toggle"}:
            self.panel.toggle_run()
        elif command in {"c", "clear"}:
            dropped = self.panel.clear_dedup()
            self.console.print(f"处理记录已清空（{dropped} 条）", style="yellow")
        elif command in {"s", "status"}:
            self.console.print(render_status(await self.panel.report_status()))
        elif command in {"cfg", "config"}:
            self.console.print(render_config(self.panel.show_config()))
        elif command in {"a", "add"}:
            await self._add(argument)
        elif command in {"r", "reload"}:
            self._reload()
        elif command in {"h", "help", "?"}:
            self.console.print(HELP_TEXT, style="dim")
        else:
            self.console.print(f"未知命令：{command}", style="red")
            self.console.print(HELP_TEXT, style="dim")
        return True

    async def _add(self, target: str) -> None:
        if not target:
            self.console.print("用法：a <编号或链接>", style="yellow")
            return
        outcome = await self.panel.add_item(target)
        message, style = _ADD_MESSAGES[outcome]
        self.console.print(message.format(target=target), style=style, markup=False)

    def _reload(self) -> None:
        if self.reload_config is None:
            self.console.print("当前会话不支持重新加载配置。", style="yellow")
            return
        try:
            config = self.reload_config()
        except ValueError as exc:
            self.console.print(f"配置无效：{exc}", style="red", markup=False)
            return
        if self.panel.apply_config(config):
            self.console.print("配置已重新加载。", style="green")
        else:
            self.console.print("请先停止批量处理再重新加载配置。", style="yellow")


__all__ = ["OperatorPrompt", "StateBanner", "render_config", "render_status", "HELP_TEXT"]
