import asyncio
from collections.abc import Awaitable, Callable, Iterable
import contextlib
import signal


async def serve_until_signal(
    *,
    stop: Callable[[], Awaitable[None]],
    watch: Iterable[asyncio.Future | None] = (),
) -> None:
    """
    Block until SIGINT/SIGTERM arrives or a watched task finishes, then
    await ``stop()`` so the running tick can complete.
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _set() -> None:
        stop_event.set()

    loop.add_signal_handler(signal.SIGINT, _set)
    loop.add_signal_handler(signal.SIGTERM, _set)

    waiter = asyncio.create_task(stop_event.wait())
    try:
        watched = [t for t in watch if t is not None and not t.done()]
        await asyncio.wait([waiter, *watched], return_when=asyncio.FIRST_COMPLETED)
        await stop()
    finally:
        waiter.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await waiter
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
