import functools

from loguru import logger

from gateway.services.errors import ServiceError, UnexpectedError


def unexpected_guard(func):
    """
    Decorator for async service methods.

    - ServiceError subclasses propagate unchanged
    - Any other exception is logged with its traceback and re-raised as
      UnexpectedError, chained to the original
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ServiceError:
            raise
        except Exception as e:
            logger.opt(exception=e).error(
                f"Unexpected failure in {func.__qualname__}: {type(e).__name__}"
            )
            raise UnexpectedError(f"{type(e).__name__}: {e}") from e

    return wrapper
