from apscheduler.schedulers.asyncio import AsyncIOScheduler
from datetime import timezone
import bugsnag
from functools import wraps
from typing import Callable, Any

from learnhub.db.refresh_token import delete_expired_refresh_tokens
from learnhub.settings import settings
from learnhub.utils.logging import logger

scheduler = AsyncIOScheduler(timezone=timezone.utc)


def with_error_reporting(context: str):
    """Decorator to add Bugsnag error reporting to scheduled tasks"""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Scheduled job {context} failed: {e}", exc_info=True)
                if settings.bugsnag_api_key:
                    bugsnag.notify(e, context=context)
                raise

        return wrapper

    return decorator


@scheduler.scheduled_job("interval", hours=1)
@with_error_reporting("refresh_token_purge")
async def purge_expired_refresh_tokens():
    deleted = await delete_expired_refresh_tokens()
    if deleted:
        logger.info(f"Purged {deleted} expired refresh tokens")
