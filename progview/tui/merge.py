"""Fan several async event sources into a single stream."""

import asyncio
from typing import AsyncIterable, AsyncIterator, TypeVar

T = TypeVar("T")


async def merge(*sources: AsyncIterable[T], until_any_exhausted: bool = False) -> AsyncIterator[T]:
    """Yield items from all `sources` as they become ready.

    Each source has at most one pending read, so items of one source come out
    in their original order. When several sources are ready at once they are
    served in the order they were passed in.

    The stream ends when all sources are exhausted, or as soon as the first one
    is if `until_any_exhausted` is set.
    """
    iterators = [source.__aiter__() for source in sources]
    pending: dict[asyncio.Future, int] = {}

    def schedule(index: int) -> None:
        pending[asyncio.ensure_future(iterators[index].__anext__())] = index

    for index in range(len(iterators)):
        schedule(index)
    try:
        while pending:
            done, _ = await asyncio.wait(list(pending), return_when=asyncio.FIRST_COMPLETED)
            for future in sorted(done, key=lambda f: pending[f]):
                index = pending.pop(future)
                try:
                    item = future.result()
                except StopAsyncIteration:
                    if until_any_exhausted:
                        return
                    continue
                yield item
                schedule(index)
    finally:
        for future in pending:
            future.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for iterator in iterators:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
