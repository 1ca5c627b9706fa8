"""
Tests for the list and configuration manager.
"""

import pytest

from conftest import make_workspace
from timetally.timer import (
    ListManager,
    MemorySlotStore,
    NotificationMode,
    TimerEngine,
    TimerState,
    Workspace,
    WorkspaceCodec,
    WorkspaceStore,
)


@pytest.fixture
def slots() -> MemorySlotStore:
    return MemorySlotStore()


@pytest.fixture
def manager(slots: MemorySlotStore) -> ListManager:
    return ListManager(Workspace.default(), WorkspaceStore(slots))


def saved(slots: MemorySlotStore) -> Workspace:
    return WorkspaceCodec.load(slots.get("timeTallyData"))


class TestCreateList:
    """Tests for create_list."""

    def test_create_and_switch(self, manager: ListManager, slots: MemorySlotStore):
        assert manager.create_list("Work") is True
        assert manager.names == ["default", "Work"]
        assert manager.workspace.current_list == "Work"
        assert saved(slots).list_order == ["default", "Work"]

    def test_create_without_switch(self, manager: ListManager):
        assert manager.create_list("Work", make_current=False) is True
        assert manager.workspace.current_list == "default"

    def test_name_is_trimmed(self, manager: ListManager):
        manager.create_list("  Work  ")
        assert "Work" in manager.names

    def test_duplicate_is_noop(self, manager: ListManager, slots: MemorySlotStore):
        manager.create_list("Work", make_current=False)
        before = manager.workspace.model_copy(deep=True)

        assert manager.create_list("Work") is False
        assert manager.workspace == before

    def test_empty_name_rejected(self, manager: ListManager, slots: MemorySlotStore):
        assert manager.create_list("   ") is False
        assert manager.names == ["default"]
        assert slots.get("timeTallyData") is None


class TestRenameList:
    """Tests for rename_list."""

    def test_rename(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        assert manager.rename_list("Work", "Office") is True
        assert manager.names == ["default", "Office"]

    def test_rename_to_same_name(self, manager: ListManager):
        assert manager.rename_list("default", "default") is False

    def test_rename_collision(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        assert manager.rename_list("Work", "default") is False
        assert manager.names == ["default", "Work"]

    def test_rename_case_only_is_allowed(self, manager: ListManager):
        assert manager.rename_list("default", "Default") is True
        assert manager.workspace.current_list == "Default"

    def test_rename_unknown(self, manager: ListManager):
        assert manager.rename_list("ghost", "Work") is False


class TestDeleteList:
    """Tests for delete_list."""

    def test_delete_only_list_is_noop(self, manager: ListManager):
        before = manager.workspace.model_copy(deep=True)
        assert manager.delete_list("default") is False
        assert manager.workspace.list_order == before.list_order
        assert manager.workspace.lists == before.lists

    def test_delete_other_list(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        assert manager.delete_list("Work") is True
        assert manager.names == ["default"]
        assert manager.workspace.current_list == "default"

    def test_delete_current_list_halts_engine(self, ticker):
        ws = make_workspace(("A", 10))
        ws.add_list("Work")
        engine = TimerEngine(ws, ticker)
        manager = ListManager(ws, engine=engine)
        engine.start()

        assert manager.delete_list("default") is True
        assert engine.state == TimerState.IDLE
        assert not ticker.is_running
        assert ws.current_list == "Work"

    def test_delete_unknown(self, manager: ListManager):
        assert manager.delete_list("ghost") is False


class TestReorderAndSwitch:
    """Tests for reorder_lists and switch_list."""

    def test_reorder(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        assert manager.reorder_lists(["Work", "default"]) is True
        assert manager.names == ["Work", "default"]

    def test_reorder_invalid(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        assert manager.reorder_lists(["Work"]) is False
        assert manager.names == ["default", "Work"]

    def test_switch_halts_and_resets_cursor(self, ticker):
        ws = make_workspace(("A", 10), ("B", 5))
        ws.add_list("Work")
        engine = TimerEngine(ws, ticker)
        manager = ListManager(ws, engine=engine)
        engine.start()
        engine.skip()

        assert manager.switch_list("Work") is True
        assert ws.current_list == "Work"
        assert ws.current_task_index == 0
        assert engine.state == TimerState.IDLE

    def test_switch_to_current_is_noop(self, manager: ListManager):
        assert manager.switch_list("default") is False

    def test_switch_unknown(self, manager: ListManager):
        assert manager.switch_list("ghost") is False
        assert manager.workspace.current_list == "default"


class TestConfigs:
    """Tests for per-list configuration editing."""

    def test_get_or_create_config_saves_once(self, manager: ListManager, slots: MemorySlotStore):
        manager.workspace.list_configs.clear()
        first = manager.get_or_create_config("default")
        slots.slots.clear()
        second = manager.get_or_create_config("default")

        assert first is second
        assert slots.get("timeTallyData") is None

    def test_update_config(self, manager: ListManager, slots: MemorySlotStore):
        assert manager.update_config(
            tts_enabled=True,
            notification_mode="customCompletion",
            custom_message="  Done!  ",
        ) is True

        config = manager.workspace.list_configs["default"]
        assert config.tts_enabled is True
        assert config.beep_enabled is True
        assert config.notification_mode == NotificationMode.CUSTOM_MESSAGE_ON_COMPLETE
        assert config.custom_message == "Done!"
        assert saved(slots).list_configs["default"] == config

    def test_update_config_other_list(self, manager: ListManager):
        manager.create_list("Work", make_current=False)
        manager.update_config("Work", beep_enabled=False)
        assert manager.workspace.list_configs["Work"].beep_enabled is False
        assert manager.workspace.list_configs["default"].beep_enabled is True

    def test_update_config_invalid_mode(self, manager: ListManager):
        assert manager.update_config(tts_enabled=True, notification_mode="shout") is False
        assert manager.workspace.list_configs["default"].tts_enabled is False

    def test_update_config_unknown_list(self, manager: ListManager):
        assert manager.update_config("ghost", beep_enabled=False) is False
        assert "ghost" not in manager.workspace.list_configs
