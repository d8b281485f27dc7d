"""
timers.py

Cancelable one-shot delayed callbacks on the Qt event loop.

Anything with ``call_later(delay_ms, callback) -> handle`` and
``handle.cancel()`` can drive the countdown and the auto-draw loop; tests
substitute a manual clock.
"""

from typing import Callable, Optional

from PyQt5 import QtCore


class QtTimerHandle:
    """Wraps a single-shot QTimer. cancel() is safe to call more than once."""

    def __init__(self, timer: QtCore.QTimer):
        self._timer: Optional[QtCore.QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()  # Schedule for deletion in the owning thread
        self._timer = None

    def _on_fired(self) -> None:
        if self._timer is not None:
            self._timer.deleteLater()
            self._timer = None


class QtTimerFactory:
    """Creates precise single-shot timers parented to *parent* (optional)."""

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QtCore.QTimer(self._parent)
        timer.setTimerType(QtCore.Qt.PreciseTimer)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))
        handle = QtTimerHandle(timer)

        def _fire():
            handle._on_fired()
            callback()

        timer.timeout.connect(_fire)
        timer.start()
        return handle
