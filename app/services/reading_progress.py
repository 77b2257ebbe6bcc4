"""
Reading Progress
Headless model of the public reading view: scroll progress, TOC track
height and click-to-scroll navigation

The view talks to its surroundings through two small interfaces so it
can be driven by any rendering surface (and by fakes in tests):

- viewport: `scroll_y`, `viewport_height`, `content_rect()` ->
  (top, height) relative to the viewport or None, `element_top(id)` ->
  top relative to the viewport or None, `scroll_to(y, smooth)`,
  `replace_fragment(fragment)`
- frames: `request_frame(callback)` -> handle, `cancel_frame(handle)`
"""

from typing import Any, Callable, Optional

from app.core.config import settings
from app.core.logging import logger

HEADER_OFFSET = settings.READER_HEADER_OFFSET


def compute_progress(
    scroll_y: float,
    content_top: float,
    content_height: float,
    viewport_height: float,
    offset: float = HEADER_OFFSET,
) -> float:
    """
    Fraction of the content region the reader has scrolled through.

    Args:
        scroll_y: Current page scroll offset
        content_top: Content top relative to the viewport
        content_height: Content element height
        viewport_height: Viewport height
        offset: Header clearance

    Returns:
        Progress in [0, 1]
    """
    top_doc = scroll_y + content_top
    start = top_doc - offset
    end = top_doc + content_height - viewport_height

    if end <= start:
        # content shorter than the viewport
        return 1.0 if scroll_y > start else 0.0

    progress = (scroll_y - start) / max(1.0, end - start)
    return max(0.0, min(1.0, progress))


def scroll_target(element_top: float, scroll_y: float, offset: float = HEADER_OFFSET) -> float:
    """Page offset that puts an element just below the header."""
    return element_top + scroll_y - offset


class ReadingProgressTracker:
    """
    Keeps `progress` in sync with scrolling and resizing.

    Scroll and resize notifications are coalesced: at most one
    recomputation is pending per animation frame.
    """

    def __init__(self, viewport: Any, frames: Any, offset: float = HEADER_OFFSET):
        self.viewport = viewport
        self.frames = frames
        self.offset = offset
        self.progress = 0.0
        self.mounted = False
        self._ticking = False
        self._frame = None

    def mount(self, loading: bool = False) -> bool:
        """
        Start tracking once content is in the viewport.

        Args:
            loading: True while the document is still loading

        Returns:
            Whether tracking started
        """
        if loading:
            return False
        self.mounted = True
        self.recompute()
        return True

    def unmount(self) -> None:
        self.mounted = False
        if self._frame is not None:
            self.frames.cancel_frame(self._frame)
            self._frame = None
        self._ticking = False

    def recompute(self) -> float:
        rect = self.viewport.content_rect()
        if rect is None:
            return self.progress
        top, height = rect
        self.progress = compute_progress(
            self.viewport.scroll_y,
            top,
            height,
            self.viewport.viewport_height,
            self.offset,
        )
        return self.progress

    def _schedule(self) -> None:
        if not self.mounted or self._ticking:
            return
        self._ticking = True
        self._frame = self.frames.request_frame(self._on_frame)

    def _on_frame(self, *_args) -> None:
        self._frame = None
        self.recompute()
        self._ticking = False

    def on_scroll(self) -> None:
        self._schedule()

    def on_resize(self) -> None:
        self._schedule()

    @property
    def percent(self) -> int:
        return round(self.progress * 100)


class MenuHeightSync:
    """Tracks the rendered TOC list height for the progress track."""

    def __init__(self, measure: Callable[[], Optional[float]], frames: Any):
        self.measure = measure
        self.frames = frames
        self.height = 0.0
        self._frame = None

    def start(self, loading: bool = False) -> None:
        if loading:
            return
        self._frame = self.frames.request_frame(self._on_frame)

    def _on_frame(self, *_args) -> None:
        self._frame = None
        self.update()

    def update(self) -> float:
        self.height = self.measure() or 0.0
        return self.height

    def on_resize(self) -> None:
        """Resize-observer notification for the TOC list."""
        self.update()

    def stop(self) -> None:
        if self._frame is not None:
            self.frames.cancel_frame(self._frame)
            self._frame = None


class TocNavigator:
    """Click-to-scroll for TOC entries."""

    def __init__(self, viewport: Any, frames: Any, offset: float = HEADER_OFFSET):
        self.viewport = viewport
        self.frames = frames
        self.offset = offset

    def _try_scroll(self, anchor_id: str) -> bool:
        top = self.viewport.element_top(anchor_id)
        if top is None:
            return False
        self.viewport.scroll_to(scroll_target(top, self.viewport.scroll_y, self.offset), smooth=True)
        self.viewport.replace_fragment(f"#{anchor_id}")
        return True

    def click(self, anchor_id: str, event: Any = None) -> bool:
        """
        Handle a TOC click.

        The default anchor jump is suppressed. When the heading has not
        received its id yet (renderer still reconciling), one more
        attempt is made on the next frame, then the click is dropped.

        Args:
            anchor_id: Target heading id
            event: Click event exposing prevent_default(), if any

        Returns:
            True when the scroll happened immediately
        """
        if event is not None:
            event.prevent_default()

        if self._try_scroll(anchor_id):
            return True

        def retry(*_args):
            if not self._try_scroll(anchor_id):
                logger.debug(f"[READER] Heading #{anchor_id} not rendered, click dropped")

        self.frames.request_frame(retry)
        return False
