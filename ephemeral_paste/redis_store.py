"""
Redis paste store.

Redis model:
- key: paste:{id} (hash)
  - content
  - created_at_ms (string)
  - expires_at_ms (string, empty when the paste has no TTL)
  - remaining_views (string, empty when views are unlimited)

Consumption runs as a single Lua script, so the expiry check, the view
decrement and the delete happen without any other command interleaving.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from redis import Redis
from redis.exceptions import RedisError

from ephemeral_paste.database import PasteStore
from ephemeral_paste.errors import StorageError
from ephemeral_paste.models import PasteRecord

logger = logging.getLogger(__name__)

KEY_PREFIX = "paste:"

# KEYS[1] = paste key, ARGV[1] = now in epoch ms
# Returns nil when the paste is missing, expired, exhausted or malformed;
# otherwise {content, created_at_ms, expires_at_ms, remaining_views}.
CONSUME_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])

local function to_int(raw)
  local n = tonumber(raw)
  if n == nil or n ~= math.floor(n) then
    return nil
  end
  return n
end

if redis.call("EXISTS", key) == 0 then
  return nil
end

local content = redis.call("HGET", key, "content")
local created_at_ms = redis.call("HGET", key, "created_at_ms") or ""
local expires_at_ms_raw = redis.call("HGET", key, "expires_at_ms") or ""
local remaining_views_raw = redis.call("HGET", key, "remaining_views") or ""

if not content or to_int(created_at_ms) == nil then
  return nil
end

local expires_at_ms = nil
if expires_at_ms_raw ~= "" then
  expires_at_ms = to_int(expires_at_ms_raw)
  if expires_at_ms == nil then
    return nil
  end
end

local remaining_views = nil
if remaining_views_raw ~= "" then
  remaining_views = to_int(remaining_views_raw)
  if remaining_views == nil then
    return nil
  end
end

if expires_at_ms and now >= expires_at_ms then
  redis.call("DEL", key)
  return nil
end

if remaining_views ~= nil then
  if remaining_views <= 0 then
    redis.call("DEL", key)
    return nil
  end
  local next_views = remaining_views - 1
  if next_views < 0 then
    next_views = 0
  end
  redis.call("HSET", key, "remaining_views", string.format("%d", next_views))
  remaining_views_raw = string.format("%d", next_views)
end

return {content, created_at_ms, expires_at_ms_raw, remaining_views_raw}
"""


def _paste_key(paste_id: str) -> str:
    return f"{KEY_PREFIX}{paste_id}"


def _encode_optional(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _decode_optional(raw: str) -> Optional[int]:
    """Empty string means absent. Raises ValueError on garbage."""
    if raw == "":
        return None
    return int(raw)


class RedisPasteStore(PasteStore):
    """Paste store backed by a Redis server."""

    def __init__(self, client: Redis):
        self.redis = client
        self._consume = self.redis.register_script(CONSUME_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisPasteStore":
        """
        Build a store from a redis:// or rediss:// URL.

        For Upstash Redis, use the rediss:// scheme for SSL/TLS. No
        connection is opened until the first command.
        """
        logger.info(f"Configuring Redis client for {url[:30]}...")
        return cls(Redis.from_url(url, decode_responses=True))

    def create(self, record: PasteRecord) -> None:
        key = _paste_key(record.id)
        paste_data = {
            "content": record.content,
            "created_at_ms": str(record.created_at_ms),
            "expires_at_ms": _encode_optional(record.expires_at_ms),
            "remaining_views": _encode_optional(record.remaining_views),
        }

        try:
            with self.redis.pipeline() as pipe:
                pipe.hset(key, mapping=paste_data)
                # Key TTL only reclaims storage; expires_at_ms stays authoritative
                if record.expires_at_ms is not None:
                    ttl_seconds = max(
                        1, math.ceil((record.expires_at_ms - record.created_at_ms) / 1000)
                    )
                    pipe.expire(key, ttl_seconds)
                pipe.execute()
        except RedisError as e:
            logger.error(f"Error saving paste {record.id}: {type(e).__name__}: {e}")
            raise StorageError("Failed to save paste") from e

        logger.info(f"Paste {record.id} saved successfully")

    def consume_by_id(self, paste_id: str, now_ms: int) -> Optional[PasteRecord]:
        try:
            result = self._consume(keys=[_paste_key(paste_id)], args=[str(now_ms)])
        except RedisError as e:
            logger.error(f"Error consuming paste {paste_id}: {type(e).__name__}: {e}")
            raise StorageError("Failed to read paste") from e

        if not result:
            return None
        return self._parse_result(paste_id, result)

    @staticmethod
    def _parse_result(paste_id: str, result: List[Any]) -> Optional[PasteRecord]:
        try:
            content, created_at_ms, expires_at_ms, remaining_views = result
            fields: Dict[str, Any] = {
                "created_at_ms": int(created_at_ms),
                "expires_at_ms": _decode_optional(expires_at_ms),
                "remaining_views": _decode_optional(remaining_views),
            }
        except (TypeError, ValueError) as e:
            logger.warning(f"Paste {paste_id} returned malformed data: {e}")
            return None

        if fields["remaining_views"] is not None and fields["remaining_views"] < 0:
            logger.warning(f"Paste {paste_id} returned a negative view count")
            return None

        return PasteRecord(id=paste_id, content=content, **fields)

    def health_check(self) -> bool:
        try:
            self.redis.ping()
            return True
        except RedisError as e:
            logger.error(f"Health check failed: {e}")
        return False

    def close(self) -> None:
        self.redis.close()
