"""Wall clock behind a seam so day-boundary logic can run on a fake time."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime

__all__ = ["frozen", "now", "today", "use"]

_source: Callable[[], datetime] = datetime.now


def now() -> datetime:
    return _source()


def today() -> date:
    return _source().date()


def use(source: Callable[[], datetime] | None) -> None:
    """Swap the time source. None restores the system clock."""
    global _source
    _source = source if source is not None else datetime.now


@contextmanager
def frozen(at: datetime) -> Iterator[None]:
    previous = _source
    use(lambda: at)
    try:
        yield
    finally:
        use(previous)
