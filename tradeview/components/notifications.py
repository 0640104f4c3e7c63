from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    """A user-facing message. Destructive ones are shown in the danger style."""

    title: str
    message: str = ""
    destructive: bool = False
