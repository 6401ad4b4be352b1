"""Confirmation gate for destructive actions."""
from dataclasses import dataclass
from typing import Any, Callable

DEFAULT_MESSAGE = "Are you sure you want to delete this file?"


@dataclass
class ConfirmDialog:
    """
    A blocking yes/no question in front of a destructive action.

    The dialog holds no state of its own beyond what its owner passes in.
    While ``is_loading`` is set both buttons are disabled: ``confirm`` and
    ``cancel`` do nothing and the confirm button shows ``busy_text``.
    """
    on_confirm: Callable[[], Any]
    on_cancel: Callable[[], Any]
    message: str = DEFAULT_MESSAGE
    confirm_text: str = "Delete"
    cancel_text: str = "Cancel"
    is_loading: bool = False
    busy_text: str = "Deleting..."

    @property
    def buttons_disabled(self) -> bool:
        return self.is_loading

    @property
    def confirm_label(self) -> str:
        return self.busy_text if self.is_loading else self.confirm_text

    def confirm(self) -> Any:
        if self.is_loading:
            return None
        return self.on_confirm()

    def cancel(self) -> Any:
        if self.is_loading:
            return None
        return self.on_cancel()
