from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Protocol

from .config import RelayConfig

logger = logging.getLogger(__name__)

CLOCK = "CLOCK"
MARKER = "# gmail-line-relay:"


@dataclass(frozen=True)
class Trigger:
    function_name: str
    kind: str
    interval_hours: int | None = None
    raw: str = ""


class TriggerRegistry(Protocol):
    def list_triggers(self) -> List[Trigger]: ...

    def delete_trigger(self, trigger: Trigger) -> None: ...

    def create_clock_trigger(self, function_name: str, interval_hours: int) -> Trigger: ...


def ensure_hourly_trigger(registry: TriggerRegistry, config: RelayConfig | None = None) -> bool:
    """
    Make sure one recurring clock trigger exists for the configured entry point.

    Triggers for the entry point that are not clock triggers are removed, as are
    clock triggers beyond the first.
    Returns True when a new trigger was created.
    """
    cfg = config or RelayConfig()
    exists = False
    for trigger in registry.list_triggers():
        if trigger.function_name != cfg.trigger_function_name:
            continue
        if trigger.kind != CLOCK:
            logger.info("Deleting trigger for %s with kind=%s", trigger.function_name, trigger.kind)
            registry.delete_trigger(trigger)
            continue
        if exists:
            logger.info("Deleting duplicate clock trigger for %s", trigger.function_name)
            registry.delete_trigger(trigger)
            continue
        exists = True

    if exists:
        logger.info("Clock trigger for %s already installed", cfg.trigger_function_name)
        return False

    registry.create_clock_trigger(cfg.trigger_function_name, cfg.trigger_interval_hours)
    logger.info("Installed a trigger every %s hour(s) for %s", cfg.trigger_interval_hours, cfg.trigger_function_name)
    return True


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


def _run_command(cmd: List[str], input_text: str | None = None) -> CommandResult:
    proc = subprocess.run(cmd, input=input_text, capture_output=True, text=True, check=False)
    return CommandResult(returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")


class CrontabTriggerRegistry:
    """Triggers stored as tagged lines of the current user's crontab."""

    def __init__(self, command: str, runner: Callable[..., CommandResult] = _run_command):
        self._command = command
        self._runner = runner

    def list_triggers(self) -> List[Trigger]:
        return [t for t in (_parse_line(line) for line in self._read_lines()) if t is not None]

    def delete_trigger(self, trigger: Trigger) -> None:
        lines = self._read_lines()
        if trigger.raw in lines:
            lines.remove(trigger.raw)
            self._write_lines(lines)

    def create_clock_trigger(self, function_name: str, interval_hours: int) -> Trigger:
        if interval_hours < 1 or interval_hours > 23:
            raise ValueError(f"interval_hours must be within 1-23: {interval_hours}")
        hours = "*" if interval_hours == 1 else f"*/{interval_hours}"
        line = f"0 {hours} * * * {self._command} {MARKER}{function_name}"
        self._write_lines(self._read_lines() + [line])
        return Trigger(function_name=function_name, kind=CLOCK, interval_hours=interval_hours, raw=line)

    def _read_lines(self) -> List[str]:
        result = self._runner(["crontab", "-l"])
        if result.returncode != 0:
            # crontab -l exits non-zero when the user has no crontab yet.
            if "no crontab" in result.stderr.lower():
                return []
            raise RuntimeError(f"crontab -l failed: {result.stderr.strip()}")
        return result.stdout.splitlines()

    def _write_lines(self, lines: List[str]) -> None:
        content = "\n".join(lines) + "\n" if lines else ""
        result = self._runner(["crontab", "-"], input_text=content)
        if result.returncode != 0:
            raise RuntimeError(f"crontab update failed: {result.stderr.strip()}")


def _parse_line(line: str) -> Trigger | None:
    if MARKER not in line:
        return None
    schedule_part, _, function_name = line.partition(MARKER)
    function_name = function_name.strip()
    fields = schedule_part.split()
    if len(fields) < 5:
        return Trigger(function_name=function_name, kind="UNKNOWN", raw=line)
    minute, hour, dom, month, dow = fields[:5]
    interval = _hourly_interval(minute, hour, dom, month, dow)
    if interval is None:
        return Trigger(function_name=function_name, kind="CRON", raw=line)
    return Trigger(function_name=function_name, kind=CLOCK, interval_hours=interval, raw=line)


def _hourly_interval(minute: str, hour: str, dom: str, month: str, dow: str) -> int | None:
    if not minute.isdigit() or (dom, month, dow) != ("*", "*", "*"):
        return None
    if hour == "*":
        return 1
    if hour.startswith("*/") and hour[2:].isdigit():
        return int(hour[2:])
    return None
