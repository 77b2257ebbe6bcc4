"""
Tests for the reading view model
"""

import pytest
from unittest.mock import Mock

from app.services.reading_progress import (
    MenuHeightSync,
    ReadingProgressTracker,
    TocNavigator,
    compute_progress,
    scroll_target,
)


class FakeFrames:
    """Collects frame callbacks until `run` is called."""

    def __init__(self):
        self.queue = {}
        self.next_handle = 0

    def request_frame(self, callback):
        self.next_handle += 1
        self.queue[self.next_handle] = callback
        return self.next_handle

    def cancel_frame(self, handle):
        self.queue.pop(handle, None)

    def run(self):
        callbacks, self.queue = list(self.queue.values()), {}
        for callback in callbacks:
            callback(0.0)


class FakeViewport:
    def __init__(self, scroll_y=0.0, viewport_height=800.0, content=(200.0, 2000.0), headings=None):
        self.scroll_y = scroll_y
        self.viewport_height = viewport_height
        self.content = content
        self.headings = headings or {}
        self.scrolls = []
        self.fragments = []

    def content_rect(self):
        if self.content is None:
            return None
        # top is relative to the viewport
        top, height = self.content
        return top - self.scroll_y, height

    def element_top(self, anchor_id):
        page_top = self.headings.get(anchor_id)
        return None if page_top is None else page_top - self.scroll_y

    def scroll_to(self, y, smooth=False):
        self.scrolls.append((y, smooth))

    def replace_fragment(self, fragment):
        self.fragments.append(fragment)


class TestComputeProgress:

    def test_bounds(self):
        # content at page y=200, height 2000, viewport 800, offset 96
        assert compute_progress(0, 200, 2000, 800, 96) == 0.0
        assert compute_progress(104, 96, 2000, 800, 96) == 0.0
        assert compute_progress(1400, -1200, 2000, 800, 96) == 1.0
        assert compute_progress(5000, -4800, 2000, 800, 96) == 1.0

    def test_midpoint(self):
        # start=104, end=1400
        assert compute_progress(752, -552, 2000, 800, 96) == pytest.approx(0.5)

    def test_short_content(self):
        assert compute_progress(0, 200, 300, 800, 96) == 0.0
        assert compute_progress(150, 50, 300, 800, 96) == 1.0

    def test_scroll_target(self):
        assert scroll_target(500, 100, 96) == 504


class TestReadingProgressTracker:

    def test_mount_waits_for_content(self):
        tracker = ReadingProgressTracker(FakeViewport(), FakeFrames(), offset=96)

        assert tracker.mount(loading=True) is False
        assert tracker.mount() is True
        assert tracker.mounted

    def test_scroll_events_coalesce_per_frame(self):
        viewport = FakeViewport()
        frames = FakeFrames()
        tracker = ReadingProgressTracker(viewport, frames, offset=96)
        tracker.mount()

        viewport.scroll_y = 752
        tracker.on_scroll()
        tracker.on_scroll()
        tracker.on_resize()
        assert len(frames.queue) == 1

        frames.run()
        assert tracker.percent == 50

        viewport.scroll_y = 5000
        tracker.on_scroll()
        frames.run()
        assert tracker.progress == 1.0

    def test_unmount_cancels_pending_frame(self):
        frames = FakeFrames()
        tracker = ReadingProgressTracker(FakeViewport(), frames)
        tracker.mount()
        tracker.on_scroll()

        tracker.unmount()

        assert frames.queue == {}
        tracker.on_scroll()
        assert frames.queue == {}

    def test_missing_content_keeps_progress(self):
        viewport = FakeViewport(content=None)
        tracker = ReadingProgressTracker(viewport, FakeFrames())
        tracker.mount()

        assert tracker.progress == 0.0


class TestMenuHeightSync:

    def test_measures_after_frame_and_on_resize(self):
        heights = iter([320.0, 480.0])
        frames = FakeFrames()
        sync = MenuHeightSync(lambda: next(heights), frames)

        sync.start(loading=True)
        assert frames.queue == {}

        sync.start()
        frames.run()
        assert sync.height == 320.0

        sync.on_resize()
        assert sync.height == 480.0

    def test_missing_list_measures_zero(self):
        sync = MenuHeightSync(lambda: None, FakeFrames())
        assert sync.update() == 0.0


class TestTocNavigator:

    def test_click_scrolls_below_header(self):
        viewport = FakeViewport(scroll_y=100, headings={"install": 1200})
        event = Mock()
        navigator = TocNavigator(viewport, FakeFrames(), offset=96)

        assert navigator.click("install", event) is True

        event.prevent_default.assert_called_once()
        assert viewport.scrolls == [(1104, True)]
        assert viewport.fragments == ["#install"]

    def test_click_retries_once_on_next_frame(self):
        viewport = FakeViewport(headings={})
        frames = FakeFrames()
        navigator = TocNavigator(viewport, frames, offset=96)

        assert navigator.click("late") is False
        viewport.headings["late"] = 600
        frames.run()

        assert viewport.scrolls == [(504, True)]
        assert viewport.fragments == ["#late"]

    def test_click_gives_up_after_retry(self):
        viewport = FakeViewport()
        frames = FakeFrames()
        navigator = TocNavigator(viewport, frames)

        navigator.click("missing")
        frames.run()

        assert viewport.scrolls == []
        assert frames.queue == {}
