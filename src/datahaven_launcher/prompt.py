"""
Yes/no confirmation that falls back to a default answer after a timeout
"""

import asyncio
import logging
import sys
import threading
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Reader = Callable[[], Awaitable[str]]

_YES = {"y", "yes"}
_NO = {"n", "no"}


async def read_stdin_line() -> str:
    """Read one line from stdin without blocking the event loop.

    The read happens in a daemon thread, so an unanswered prompt does not keep
    the interpreter alive after the timeout fired.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def _deliver(line: str) -> None:
        if not future.done():
            future.set_result(line)

    def _read() -> None:
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError):
            line = ""
        loop.call_soon_threadsafe(_deliver, line)

    threading.Thread(target=_read, name="confirm-stdin", daemon=True).start()
    return await future


def parse_answer(answer: str, default: bool) -> bool:
    normalized = answer.strip().lower()
    if normalized in _YES:
        return True
    if normalized in _NO:
        return False
    return default


async def confirm_with_timeout(
    question: str,
    default: bool,
    timeout_seconds: float,
    reader: Optional[Reader] = None,
) -> bool:
    """
    Ask a yes/no question and return ``default`` if nobody answers in time.

    Args:
        question: Question shown to the user
        default: Answer used on timeout, empty input or EOF
        timeout_seconds: Time to wait for an answer; <= 0 returns ``default`` at once
        reader: Coroutine function returning one line of input (default: stdin)

    Returns:
        The user's answer or ``default``
    """
    if timeout_seconds <= 0:
        return default

    reader = reader or read_stdin_line
    badge = "Y/n" if default else "y/N"
    print("=" * 60)
    print(f"⏱ Will default to {'YES' if default else 'NO'} in {timeout_seconds:g}s")
    print(f"? {question} {badge} ", end="", flush=True)

    try:
        answer = await asyncio.wait_for(reader(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        print()
        logger.info(f"No answer after {timeout_seconds:g}s, using default: {default}")
        answer = ""
    finally:
        print("=" * 60)

    return parse_answer(answer, default)
