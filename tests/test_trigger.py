from __future__ import annotations

from typing import List

import pytest

from gmail_line_relay.trigger import CLOCK, CommandResult, CrontabTriggerRegistry, Trigger, ensure_hourly_trigger


class FakeRegistry:
    def __init__(self, triggers: List[Trigger] | None = None):
        self.triggers = list(triggers or [])
        self.deleted: List[Trigger] = []
        self.created: List[tuple] = []

    def list_triggers(self) -> List[Trigger]:
        return list(self.triggers)

    def delete_trigger(self, trigger: Trigger) -> None:
        self.triggers.remove(trigger)
        self.deleted.append(trigger)

    def create_clock_trigger(self, function_name: str, interval_hours: int) -> Trigger:
        trigger = Trigger(function_name=function_name, kind=CLOCK, interval_hours=interval_hours)
        self.triggers.append(trigger)
        self.created.append((function_name, interval_hours))
        return trigger


def test_creates_trigger_when_none_exists():
    registry = FakeRegistry()
    assert ensure_hourly_trigger(registry) is True
    assert registry.created == [("main", 1)]


def test_keeps_existing_clock_trigger():
    registry = FakeRegistry([Trigger(function_name="main", kind=CLOCK, interval_hours=1)])
    assert ensure_hourly_trigger(registry) is False
    assert registry.created == []
    assert registry.deleted == []


def test_replaces_trigger_of_wrong_kind():
    wrong = Trigger(function_name="main", kind="ON_OPEN")
    registry = FakeRegistry([wrong])
    assert ensure_hourly_trigger(registry) is True
    assert registry.deleted == [wrong]
    assert [t.kind for t in registry.triggers] == [CLOCK]


def test_second_call_is_idempotent():
    registry = FakeRegistry()
    ensure_hourly_trigger(registry)
    ensure_hourly_trigger(registry)
    assert len(registry.triggers) == 1


def test_duplicate_clock_triggers_are_collapsed():
    first = Trigger(function_name="main", kind=CLOCK, interval_hours=1, raw="a")
    second = Trigger(function_name="main", kind=CLOCK, interval_hours=1, raw="b")
    registry = FakeRegistry([first, second])
    assert ensure_hourly_trigger(registry) is False
    assert registry.triggers == [first]


def test_other_functions_are_left_alone():
    other = Trigger(function_name="report", kind="ON_OPEN")
    registry = FakeRegistry([other])
    ensure_hourly_trigger(registry)
    assert other in registry.triggers
    assert registry.deleted == []


class FakeCrontab:
    def __init__(self, content: str | None = None):
        self.content = content
        self.writes: List[str] = []

    def __call__(self, cmd: List[str], input_text: str | None = None) -> CommandResult:
        if cmd == ["crontab", "-l"]:
            if self.content is None:
                return CommandResult(returncode=1, stdout="", stderr="no crontab for user")
            return CommandResult(returncode=0, stdout=self.content, stderr="")
        if cmd == ["crontab", "-"]:
            self.content = input_text or ""
            self.writes.append(self.content)
            return CommandResult(returncode=0, stdout="", stderr="")
        raise AssertionError(f"unexpected command {cmd}")


def test_crontab_registry_installs_hourly_line():
    crontab = FakeCrontab()
    registry = CrontabTriggerRegistry("cd /app && python main.py run", runner=crontab)
    assert ensure_hourly_trigger(registry) is True
    assert crontab.content == "0 * * * * cd /app && python main.py run # gmail-line-relay:main\n"
    [trigger] = registry.list_triggers()
    assert trigger.kind == CLOCK
    assert trigger.interval_hours == 1


def test_crontab_registry_replaces_non_hourly_entry_and_keeps_others():
    crontab = FakeCrontab(
        "MAILTO=me@example.com\n"
        "30 6 * * 1 /usr/bin/backup\n"
        "15 6 * * * old command # gmail-line-relay:main\n"
    )
    registry = CrontabTriggerRegistry("new command", runner=crontab)
    assert ensure_hourly_trigger(registry) is True
    assert crontab.content.splitlines() == [
        "MAILTO=me@example.com",
        "30 6 * * 1 /usr/bin/backup",
        "0 * * * * new command # gmail-line-relay:main",
    ]


def test_crontab_registry_leaves_existing_hourly_entry():
    crontab = FakeCrontab("5 */1 * * * existing # gmail-line-relay:main\n")
    registry = CrontabTriggerRegistry("new command", runner=crontab)
    assert ensure_hourly_trigger(registry) is False
    assert crontab.writes == []


def test_crontab_registry_rejects_invalid_interval():
    registry = CrontabTriggerRegistry("cmd", runner=FakeCrontab())
    with pytest.raises(ValueError):
        registry.create_clock_trigger("main", 0)


def test_crontab_read_failure_is_raised():
    def runner(cmd, input_text=None):
        return CommandResult(returncode=1, stdout="", stderr="permission denied")

    registry = CrontabTriggerRegistry("cmd", runner=runner)
    with pytest.raises(RuntimeError):
        registry.list_triggers()


def test_crontab_registry_keeps_blank_lines_of_user_crontab():
    crontab = FakeCrontab("MAILTO=me@example.com\n\n30 6 * * 1 /usr/bin/backup\n\n")
    registry = CrontabTriggerRegistry("cmd", runner=crontab)
    ensure_hourly_trigger(registry)
    assert crontab.content.splitlines() == [
        "MAILTO=me@example.com",
        "",
        "30 6 * * 1 /usr/bin/backup",
        "",
        "0 * * * * cmd # gmail-line-relay:main",
    ]
