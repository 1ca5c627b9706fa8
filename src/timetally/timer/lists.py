"""
List & Config Manager

Create, rename, delete, reorder and switch lists, and edit each list's
notification settings. Rejected operations are logged and leave the
workspace untouched; accepted ones are saved.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from timetally.timer.errors import TallyError, UnknownListError, ValidationError
from timetally.timer.models import ListConfiguration, NotificationMode, Workspace
from timetally.utils.logging import get_logger

if TYPE_CHECKING:
    from timetally.timer.engine import TimerEngine
    from timetally.timer.store import WorkspaceStore

logger = get_logger(__name__)


class ListManager:
    """CRUD over the workspace's lists and their configurations."""

    def __init__(
        self,
        workspace: Workspace,
        store: Optional["WorkspaceStore"] = None,
        engine: Optional["TimerEngine"] = None,
    ):
        """
        Args:
            workspace: The workspace to edit
            store: Saved to after every accepted change
            engine: Halted before the current list is switched away or deleted
        """
        self.workspace = workspace
        self.store = store
        self.engine = engine

    def _apply(self, operation: str, change: Callable[[], None], **context) -> bool:
        try:
            change()
        except TallyError as e:
            logger.warning(
                "list_operation_rejected",
                operation=operation,
                error_type=type(e).__name__,
                reason=str(e),
                **context,
            )
            return False
        logger.info("list_operation", operation=operation, **context)
        self._save()
        return True

    def _save(self) -> None:
        if self.store:
            self.store.save(self.workspace)

    def _halt(self) -> None:
        if self.engine:
            self.engine.halt()

    # =========================================================================
    # Lists
    # =========================================================================

    @property
    def names(self) -> list[str]:
        return list(self.workspace.list_order)

    def create_list(self, name: str, make_current: bool = True) -> bool:
        name = name.strip()

        def change() -> None:
            self.workspace.add_list(name)
            if make_current:
                self._halt()
                self.workspace.select_list(name)

        return self._apply("create", change, list_name=name)

    def rename_list(self, old_name: str, new_name: str) -> bool:
        new_name = new_name.strip()
        if new_name == old_name:
            return False
        return self._apply(
            "rename",
            lambda: self.workspace.rename_list(old_name, new_name),
            list_name=old_name,
            new_name=new_name,
        )

    def delete_list(self, name: str) -> bool:
        def change() -> None:
            if len(self.workspace.list_order) > 1 and name == self.workspace.current_list:
                self._halt()
            self.workspace.remove_list(name)

        return self._apply("delete", change, list_name=name)

    def reorder_lists(self, new_order: list[str]) -> bool:
        return self._apply(
            "reorder", lambda: self.workspace.set_order(new_order), order=new_order
        )

    def switch_list(self, name: str) -> bool:
        if name == self.workspace.current_list:
            return False

        def change() -> None:
            if not self.workspace.has_list(name):
                raise UnknownListError(name)
            self._halt()
            self.workspace.select_list(name)

        return self._apply("switch", change, list_name=name)

    # =========================================================================
    # Configurations
    # =========================================================================

    def get_or_create_config(self, name: str) -> ListConfiguration:
        created = name not in self.workspace.list_configs
        config = self.workspace.get_or_create_config(name)
        if created:
            logger.debug("config_defaulted", list_name=name)
            self._save()
        return config

    def update_config(
        self,
        name: Optional[str] = None,
        *,
        beep_enabled: Optional[bool] = None,
        tts_enabled: Optional[bool] = None,
        selected_voice: Optional[str] = None,
        notification_mode: Optional[NotificationMode | str] = None,
        custom_message: Optional[str] = None,
    ) -> bool:
        """Change any subset of a list's settings (current list by default)."""
        name = name or self.workspace.current_list

        def change() -> None:
            if not self.workspace.has_list(name):
                raise UnknownListError(name)
            mode = None
            if notification_mode is not None:
                try:
                    mode = NotificationMode(notification_mode)
                except ValueError as e:
                    raise ValidationError(f"Unknown notification mode {notification_mode!r}") from e

            config = self.workspace.get_or_create_config(name)
            if beep_enabled is not None:
                config.beep_enabled = beep_enabled
            if tts_enabled is not None:
                config.tts_enabled = tts_enabled
            if selected_voice is not None:
                config.selected_voice = selected_voice
            if mode is not None:
                config.notification_mode = mode
            if custom_message is not None:
                config.custom_message = custom_message.strip()

        return self._apply("configure", change, list_name=name)
