"""Helpers to run background actions while disabling buttons until completion.

UI code hands a coroutine and the buttons that trigger it to
`run_bg_with_buttons`; the buttons are disabled immediately and re-enabled
once the coroutine settles, whichever way it ends.

Usage:
  from tradeview.components.button_utils import run_bg_with_buttons

  run_bg_with_buttons([submit_btn, cancel_btn], async_run_bg, open_position(payload),
                      callback=on_done, errback=on_failed)
"""
from typing import Any, Callable, Iterable, Optional
import logging

logger = logging.getLogger(__name__)


def set_buttons_state(buttons: Iterable[Any], state: str) -> None:
    """Configure every button's state; widgets that are gone are skipped."""
    for button in buttons:
        try:
            button.configure(state=state)
        except Exception:
            # widget may have been destroyed while the job ran
            logger.debug("Could not set state %s on %r", state, button)


def run_bg_with_buttons(
    buttons: Iterable[Any],
    async_run_bg_func: Callable,
    coro: Any,
    callback: Optional[Callable] = None,
    errback: Optional[Callable] = None,
) -> None:
    """Run a coroutine via `async_run_bg_func` with `buttons` disabled meanwhile.

    - buttons: widgets with `.configure(state=...)`
    - async_run_bg_func: runner like `app.async_run_bg(coro, callback=..., errback=...)`
    - callback: called with the coroutine's result
    - errback: called with the exception if the coroutine raised

    Buttons are re-enabled after callback/errback has run, and also when the
    runner itself raises synchronously (the exception is re-raised).
    """
    buttons = list(buttons)
    set_buttons_state(buttons, "disabled")

    def _finish(handler, value):
        try:
            if handler:
                try:
                    handler(value)
                except Exception:
                    logger.exception("button callback failed")
        finally:
            set_buttons_state(buttons, "normal")

    try:
        async_run_bg_func(
            coro,
            callback=lambda result: _finish(callback, result),
            errback=lambda exc: _finish(errback, exc),
        )
    except Exception:
        set_buttons_state(buttons, "normal")
        raise
