import asyncio
import functools
import logging
from typing import Any, Callable, Coroutine, Type, TypeVar

from typing_extensions import ParamSpec

log = logging.getLogger("MusicScout")

DEFAULT_RETRIES = 2
DEFAULT_DELAY = 0.5
DEFAULT_BACKOFF = 2


T = TypeVar("T")
P = ParamSpec("P")


def async_retry(
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    retry_on: tuple[Type[Exception], ...] = (Exception,),
) -> Callable[
    [Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]
]:
    """
    A decorator to automatically retry an async function.

    Args:
        retries: The total number of attempts, including the first one.
        delay: The initial delay between attempts in seconds.
        backoff: The multiplier for the delay for each subsequent attempt.
        retry_on: A tuple of exception types to catch and trigger a retry.
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            current_delay = delay
            for attempt in range(1, retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= retries:
                        log.error(
                            "Giving up after final attempt.",
                            extra={"function": func.__name__, "attempts": retries},
                        )
                        raise
                    log.warning(
                        "Attempt failed, retrying.",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "error": str(e),
                            "delay": current_delay,
                        },
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff

            raise RuntimeError("Unreachable")

        return wrapper

    return decorator
