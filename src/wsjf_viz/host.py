"""
Host capabilities the renderers depend on.

The core never touches a UI toolkit. Everything deferred (paint frames,
font readiness, text measuring, row equalization) goes through a
RenderHost supplied by the application:

- NullHost: synchronous no-op default. Paint and font callbacks run
  immediately, text is measured with approximate metrics and row
  equalization does nothing.
- FrameQueueHost: queues callbacks until `flush()`; used by headless
  callers and tests that need to observe ordering.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from .scene import Text

Callback = Callable[[], None]

# Average advance of a tabular digit relative to the font size.
APPROX_CHAR_WIDTH = 0.6
APPROX_ASCENT = 0.8


@dataclass(frozen=True)
class TextBox:
    """Bounding box of a label drawn with its baseline origin at (0, 0)."""

    x: float
    y: float
    width: float
    height: float


def approximate_text_box(text: Text) -> TextBox:
    size = float(text.font_size)
    return TextBox(
        x=0.0,
        y=-APPROX_ASCENT * size,
        width=len(text.content) * APPROX_CHAR_WIDTH * size,
        height=size,
    )


class RenderHost(Protocol):
    def request_paint(self, callback: Callback) -> Optional[int]:
        ...

    def cancel_paint(self, handle: Optional[int]) -> None:
        ...

    def when_fonts_ready(self, callback: Callback) -> None:
        ...

    def measure_text(self, text: Text) -> TextBox:
        ...

    def equalize_rows(self) -> None:
        ...


class NullHost:
    """Synchronous default host; every capability is a no-op or immediate."""

    def request_paint(self, callback: Callback) -> Optional[int]:
        callback()
        return None

    def cancel_paint(self, handle: Optional[int]) -> None:
        return None

    def when_fonts_ready(self, callback: Callback) -> None:
        callback()

    def measure_text(self, text: Text) -> TextBox:
        return approximate_text_box(text)

    def equalize_rows(self) -> None:
        return None


class FrameQueueHost:
    """
    Collects paint callbacks and runs them on `flush()`.

    Callbacks requested while flushing land in the next frame. Font-ready
    callbacks wait for `fonts_loaded()` unless fonts are ready already.
    """

    def __init__(
        self,
        *,
        fonts_ready: bool = True,
        measure: Optional[Callable[[Text], TextBox]] = None,
        on_equalize: Optional[Callback] = None,
    ) -> None:
        self._frames: Dict[int, Callback] = {}
        self._ids = itertools.count(1)
        self._fonts_ready = fonts_ready
        self._font_waiters: List[Callback] = []
        self._measure = measure or approximate_text_box
        self._on_equalize = on_equalize
        self.equalize_calls = 0

    @property
    def pending(self) -> int:
        return len(self._frames)

    def request_paint(self, callback: Callback) -> Optional[int]:
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def cancel_paint(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._frames.pop(handle, None)

    def when_fonts_ready(self, callback: Callback) -> None:
        if self._fonts_ready:
            callback()
        else:
            self._font_waiters.append(callback)

    def fonts_loaded(self) -> None:
        self._fonts_ready = True
        waiters, self._font_waiters = self._font_waiters, []
        for callback in waiters:
            callback()

    def measure_text(self, text: Text) -> TextBox:
        return self._measure(text)

    def equalize_rows(self) -> None:
        self.equalize_calls += 1
        if self._on_equalize is not None:
            self._on_equalize()

    def flush(self) -> int:
        """Run one frame's worth of callbacks; returns how many ran."""
        frame, self._frames = self._frames, {}
        for handle in sorted(frame):
            frame[handle]()
        return len(frame)


class ResizeCoalescer:
    """
    Debounces viewport resize notifications onto the next paint frame.

    Each notification cancels the previously requested frame, so a burst
    of resizes produces a single callback.
    """

    def __init__(self, host: RenderHost, callback: Callback) -> None:
        self._host = host
        self._callback = callback
        self._handle: Optional[int] = None

    def notify(self) -> None:
        if self._handle is not None:
            self._host.cancel_paint(self._handle)
        self._handle = None
        self._handle = self._host.request_paint(self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._callback()
