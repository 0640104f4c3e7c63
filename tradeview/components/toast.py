import logging

from ttkbootstrap.toast import ToastNotification

from tradeview.components.notifications import Notification

logger = logging.getLogger(__name__)


class ToastNotifier:
    """Shows a `Notification` as a ttkbootstrap toast and logs it."""

    def __init__(self, duration: int = 3000, position=None):
        self.duration = duration
        self.position = position

    def __call__(self, note: Notification):
        level = logging.WARNING if note.destructive else logging.INFO
        logger.log(level, "%s: %s", note.title, note.message)
        kwargs = {}
        if self.position is not None:
            kwargs["position"] = self.position
        toast = ToastNotification(
            title=note.title,
            message=note.message,
            duration=self.duration,
            bootstyle="danger" if note.destructive else "success",
            alert=note.destructive,
            **kwargs,
        )
        toast.show_toast()
