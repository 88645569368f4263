from __future__ import annotations

import queue
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from polyvox.app.state import ViewState


class ViewBus:
    """
    Thread-safe handoff from worker threads -> UI thread.
    Workers push view snapshots. UI polls (non-blocking) and renders the newest.
    """
    def __init__(self, maxsize: int = 32):
        self.q: "queue.Queue[ViewState]" = queue.Queue(maxsize=maxsize)

    def push(self, snapshot: ViewState) -> None:
        try:
            self.q.put_nowait(snapshot)
        except queue.Full:
            # drop oldest; only the newest snapshot matters to the UI
            try:
                _ = self.q.get_nowait()
            except queue.Empty:
                return
            try:
                self.q.put_nowait(snapshot)
            except queue.Full:
                return

    def pop(self) -> Optional[ViewState]:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return None

    def latest(self, max_items: int = 64) -> Optional[ViewState]:
        newest = None
        for _ in range(max_items):
            snap = self.pop()
            if snap is None:
                break
            newest = snap
        return newest
