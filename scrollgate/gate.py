"""Puzzle gate evaluation over a layout snapshot."""

import logging
from collections.abc import Collection, Sequence

from scrollgate.config import GateConfig
from scrollgate.models import LayoutSnapshot, Page, Span

logger = logging.getLogger(__name__)


class GateEvaluator:
    """Decides whether an unsolved puzzle in view blocks forward scrolling.

    Pages, progress and layout are only read, never modified.
    """

    def __init__(self, config: GateConfig | None = None) -> None:
        self.config = config or GateConfig()

    def _gate_span(self, page: Page, layout: LayoutSnapshot) -> Span | None:
        # Puzzle input box when the renderer reports it, else the whole page
        return layout.puzzles.get(page.index) or layout.pages.get(page.index)

    def blocking_page(
        self,
        pages: Sequence[Page],
        completed: Collection[int],
        layout: LayoutSnapshot,
    ) -> Page | None:
        """Return the lowest-index page whose unsolved puzzle is in view."""
        tol = self.config.tolerance
        viewport = layout.viewport
        top = viewport.top + tol
        bottom = viewport.bottom - tol

        for page in sorted(pages, key=lambda p: p.index):
            if not page.has_puzzle or page.index in completed:
                continue
            span = self._gate_span(page, layout)
            if span is None:
                logger.debug("No layout for puzzle page %d; not gating", page.index)
                continue
            if span.overlaps(top, bottom):
                return page
        return None

    def is_blocked(
        self,
        pages: Sequence[Page],
        completed: Collection[int],
        layout: LayoutSnapshot,
    ) -> bool:
        return self.blocking_page(pages, completed, layout) is not None

    def blocking_page_between(
        self,
        pages: Sequence[Page],
        completed: Collection[int],
        layout: LayoutSnapshot,
        target: int,
    ) -> Page | None:
        """Return the first gating page seen anywhere while scrolling from layout.offset to target.

        The viewport sweeps [offset, target + viewport_height], so a long jump
        cannot pass over a puzzle.
        """
        start = min(layout.offset, target)
        end = max(layout.offset, target)
        swept = layout.model_copy(update={
            "offset": start,
            "viewport_height": layout.viewport_height + (end - start),
        })
        return self.blocking_page(pages, completed, swept)

    def find_safe_position(
        self,
        current_offset: int,
        layout: LayoutSnapshot,
        pages: Sequence[Page],
        completed: Collection[int],
    ) -> int:
        """Step from current_offset toward 0 until an offset is not blocked.

        Returns 0 if every probed offset is blocked.
        """
        step = max(1, self.config.probe_step)
        offset = max(0, current_offset)
        while offset > 0:
            if not self.is_blocked(pages, completed, layout.at(offset)):
                return offset
            offset -= step
        logger.info("No safe offset below %d; falling back to 0", current_offset)
        return 0
