import functools
import logging

logger = logging.getLogger(__name__)


def transactional(func):
    """
    Run a service coroutine as one unit of work on ``self.db``.

    Everything the coroutine writes is committed together when it returns;
    any exception rolls the session back before propagating, so a refused
    operation leaves no partial state behind.
    """
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            result = await func(self, *args, **kwargs)
            self.db.commit()
            return result
        except Exception as e:
            self.db.rollback()
            logger.debug(f"Rolled back {func.__name__}: {type(e).__name__}: {e}")
            raise

    return wrapper
