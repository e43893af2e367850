"""Batch execution engine for fanning out independent generation calls."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from .config import Config
from .errors import GenerationError, StoryframeError

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


@dataclass
class ItemResult(Generic[ResultT]):
    """Outcome of one task in a batch run."""

    index: int
    key: str
    value: Optional[ResultT] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport(Generic[ResultT]):
    """Per-item results of a batch run, in submission order."""

    results: List[ItemResult[ResultT]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def failures(self) -> List[ItemResult[ResultT]]:
        return [r for r in self.results if not r.ok]

    def require_all(self, label: str = "batch") -> List[ResultT]:
        """Return every value in order, or raise the first failure.

        Raises:
            StoryframeError: The failing task's own error, if it was one.
            GenerationError: Any other failure, wrapped with the item key.
        """
        for result in self.results:
            if result.ok:
                continue
            if isinstance(result.error, StoryframeError):
                raise result.error
            raise GenerationError(
                f"{label} failed for {result.key}: {result.error}",
                details={"key": result.key, "type": type(result.error).__name__},
            )
        return [r.value for r in self.results]


class AdaptivePacer:
    """Inter-batch delay that widens after failures and relaxes after success.

    The delay starts at ``base_delay``. Each batch with a failure multiplies it
    by ``backoff`` (never above ``max_delay``); each clean batch multiplies it
    by ``decay`` down to ``base_delay`` again.
    """

    MIN_BACKOFF_DELAY = 0.5

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 8.0,
        backoff: float = 2.0,
        decay: float = 0.5,
    ) -> None:
        self._base_delay = base_delay
        self._max_delay = max(max_delay, base_delay)
        self._backoff = backoff
        self._decay = decay
        self._delay = base_delay

    @property
    def delay(self) -> float:
        """Return the delay to wait before the next batch."""
        return self._delay

    def record(self, failed: int, total: int) -> None:
        """Feed back the outcome of a finished batch."""
        if failed:
            widened = max(self._delay * self._backoff, self._base_delay, self.MIN_BACKOFF_DELAY)
            self._delay = min(widened, self._max_delay)
            logger.warning(
                f"{failed}/{total} task(s) failed; next batch waits {self._delay:.1f}s"
            )
        else:
            self._delay = max(self._base_delay, self._delay * self._decay)


class BatchRunner:
    """Run independent tasks in fixed-size concurrent batches.

    Every task in a batch runs at once. The next batch starts only after all
    tasks in the current one have settled and the pacer's delay has passed.
    ``batch_size=None`` puts every task in a single batch with no cooldown.
    A failing task never aborts its siblings; its error is recorded instead.
    """

    def __init__(
        self,
        batch_size: Optional[int] = 3,
        cooldown: float = 1.0,
        pacer: Optional[AdaptivePacer] = None,
        max_workers: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size is not None and batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._batch_size = batch_size
        self._max_workers = max_workers
        self._pacer = pacer or AdaptivePacer(base_delay=cooldown, max_delay=cooldown)
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "BatchRunner":
        """Bounded runner using the configured batch size and pacing."""
        pacer = AdaptivePacer(
            base_delay=config.batch_cooldown,
            max_delay=config.max_batch_cooldown,
        )
        return cls(batch_size=config.batch_size, pacer=pacer, **kwargs)

    @classmethod
    def keyframes_from_config(cls, config: Config, **kwargs) -> "BatchRunner":
        """Runner for keyframe fan-out; unbounded unless configured otherwise."""
        if config.keyframe_batch_size is None:
            return cls(batch_size=None, cooldown=0.0, **kwargs)
        pacer = AdaptivePacer(
            base_delay=config.batch_cooldown,
            max_delay=config.max_batch_cooldown,
        )
        return cls(batch_size=config.keyframe_batch_size, pacer=pacer, **kwargs)

    @property
    def batch_size(self) -> Optional[int]:
        return self._batch_size

    def run(
        self,
        items: Iterable[ItemT],
        fn: Callable[[ItemT], ResultT],
        key: Optional[Callable[[ItemT], str]] = None,
    ) -> BatchReport[ResultT]:
        """Execute ``fn`` on every item.

        Args:
            items: Work items; each is handed to ``fn`` on a worker thread.
            fn: Task to run per item.
            key: Optional label for an item, used in logs and errors.

        Returns:
            BatchReport with one ItemResult per item in submission order.
        """
        work: Sequence[ItemT] = list(items)
        label = key or (lambda item: str(item))
        slots: List[Optional[ItemResult[ResultT]]] = [None] * len(work)

        size = self._batch_size or max(len(work), 1)
        batches = [range(i, min(i + size, len(work))) for i in range(0, len(work), size)]

        for batch_number, indices in enumerate(batches, start=1):
            logger.info(
                f"Batch {batch_number}/{len(batches)}: {len(indices)} task(s)"
            )
            workers = min(len(indices), self._max_workers or len(indices))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_index = {
                    executor.submit(fn, work[i]): i
                    for i in indices
                }
                for future in as_completed(future_to_index):
                    i = future_to_index[future]
                    item_key = label(work[i])
                    try:
                        slots[i] = ItemResult(index=i, key=item_key, value=future.result())
                    except Exception as e:
                        logger.error(f"Task {item_key} failed: {e}")
                        slots[i] = ItemResult(index=i, key=item_key, error=e)

            failed = sum(1 for i in indices if not slots[i].ok)
            self._pacer.record(failed, len(indices))

            if batch_number < len(batches) and self._pacer.delay > 0:
                logger.debug(f"Cooling down {self._pacer.delay:.1f}s before next batch")
                self._sleep(self._pacer.delay)

        return BatchReport(results=list(slots))
