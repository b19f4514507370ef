import redis

from storefront.utils.settings import REDIS_URL, WEBHOOK_EVENT_TTL_SECONDS
from storefront.utils.retry import redis_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one atomic step, only the run that claimed the event can release it
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class WebhookEventGuard:
    """
    -claims a webhook event id so a duplicate delivery is skipped
    -releases the claim when processing failed, so the gateway retry gets through
    """

    def __init__(self, url: str | None = None, ttl: int | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl or WEBHOOK_EVENT_TTL_SECONDS

    @staticmethod
    def _key(event_id: str) -> str:
        return f"webhook:event:{event_id}"

    @redis_retry()
    def claim(self, event_id: str, owner: str) -> bool:
        key = self._key(event_id)
        logger.info(f"Claim {key} by {owner}")
        #SET webhook:event:evt_1 "<owner>" NX EX <ttl>
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=self.ttl))

    @redis_retry()
    def release(self, event_id: str, owner: str) -> bool:
        key = self._key(event_id)
        logger.info(f"Release {key} by {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
