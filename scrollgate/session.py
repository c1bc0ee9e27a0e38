"""Story session: the explicit context shared by parser, gate and controller."""

import logging
from collections.abc import Sequence

from scrollgate.config import Config
from scrollgate.errors import PageNotFoundError
from scrollgate.gate import GateEvaluator
from scrollgate.loader import load_pages
from scrollgate.models import Page, PageLoadResult, Progress
from scrollgate.parser import PageParser
from scrollgate.progress import ProgressStore, SqliteKeyValueStore

logger = logging.getLogger(__name__)


class StorySession:
    """Pages, progress and gate for one reader of one story."""

    def __init__(
        self,
        config: Config,
        pages: Sequence[Page],
        store: ProgressStore,
        gate: GateEvaluator | None = None,
        failures: dict[int, str] | None = None,
    ) -> None:
        self.config = config
        self.pages = sorted(pages, key=lambda p: p.index)
        self.failures = dict(failures or {})
        self.store = store
        self.gate = gate or GateEvaluator(config.gate)
        self.progress = store.load()
        self._kv: SqliteKeyValueStore | None = None

    @classmethod
    def open(cls, config: Config) -> "StorySession":
        """Load the configured story and open its SQLite progress store."""
        result: PageLoadResult = load_pages(
            config.resolved_story_dir, config.story, PageParser(),
        )
        kv = SqliteKeyValueStore(config.resolved_db_path)
        kv.init_db()
        session = cls(
            config,
            result.pages,
            ProgressStore(kv, config.storage.progress_key),
            failures=result.failures,
        )
        session._kv = kv
        return session

    @property
    def is_empty(self) -> bool:
        return not self.pages

    @property
    def is_partial(self) -> bool:
        return bool(self.pages) and bool(self.failures)

    def page(self, index: int) -> Page:
        for page in self.pages:
            if page.index == index:
                return page
        raise PageNotFoundError(f"No page with index {index}")

    def save_progress(self, progress: Progress) -> None:
        self.store.save(progress)
        self.progress = progress

    def close(self) -> None:
        if self._kv is not None:
            self._kv.close()
            self._kv = None
