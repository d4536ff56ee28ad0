"""Popup display state for Cookie Keeper."""

from cookie_keeper.ui.popup import PopupController, PopupView

__all__ = ["PopupController", "PopupView"]
