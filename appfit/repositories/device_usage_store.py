"""Redis-backed daily message counters for anonymous devices."""

import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from appfit.exceptions import StorageReadError, StorageWriteError
from appfit.repositories.base import DailyUsageRecord
from appfit.utils.logger import get_logger

log = get_logger(__name__)

# KEYS[1] = device key; ARGV = day, limit, ttl seconds.
# Unreadable values count as zero, same as DeviceUsageStore.load.
_INCREMENT_IF_BELOW_LUA = """
local raw = redis.call('GET', KEYS[1])
local day = ARGV[1]
local limit = tonumber(ARGV[2])
local ttl = tonumber(ARGV[3])
local count = 0
if raw then
  local ok, data = pcall(cjson.decode, raw)
  if ok and type(data) == 'table' and data['day'] == day then
    local c = data['count']
    if type(c) == 'number' and c >= 0 and c == math.floor(c) then
      count = c
    end
  end
end
if count >= limit then
  return {count, 0}
end
count = count + 1
redis.call('SET', KEYS[1], cjson.encode({day = day, count = count}), 'EX', ttl)
return {count, 1}
"""


def parse_usage_value(identity: str, raw: Any) -> Optional[DailyUsageRecord]:
    """Parse a stored ``{"day": ..., "count": ...}`` value.

    Corrupted or wrongly shaped values yield None.
    """
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        log.warning("corrupted device usage value", identity=identity)
        return None

    if not isinstance(data, dict):
        log.warning("malformed device usage value", identity=identity)
        return None

    day = data.get("day")
    count = data.get("count")
    if not isinstance(day, str) or isinstance(count, bool) or not isinstance(count, int) or count < 0:
        log.warning("malformed device usage value", identity=identity)
        return None

    return DailyUsageRecord(identity=identity, day=day, count=count)


class DeviceUsageStore:
    """Per-device counters, one JSON value per key, shared across app instances."""

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "daily_message_data",
        ttl_seconds: int = 172800,
    ) -> None:
        self._redis = redis
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    def key_for(self, identity: str) -> str:
        return f"{self._key_prefix}:{identity}"

    async def load(self, identity: str) -> Optional[DailyUsageRecord]:
        try:
            raw = await self._redis.get(self.key_for(identity))
        except RedisError as e:
            log.error("device usage load failed", identity=identity, error=str(e))
            raise StorageReadError("Failed to load device usage", identity=identity) from e
        return parse_usage_value(identity, raw)

    async def save(self, record: DailyUsageRecord) -> None:
        value = json.dumps({"day": record.day, "count": record.count})
        try:
            await self._redis.set(self.key_for(record.identity), value, ex=self._ttl_seconds)
        except RedisError as e:
            log.error("device usage save failed", identity=record.identity, error=str(e))
            raise StorageWriteError("Failed to save device usage", identity=record.identity) from e

    async def increment_if_below(self, identity: str, day: str, limit: int) -> tuple[int, bool]:
        try:
            count, accepted = await self._redis.eval(
                _INCREMENT_IF_BELOW_LUA,
                1,
                self.key_for(identity),
                day,
                limit,
                self._ttl_seconds,
            )
        except RedisError as e:
            log.error("device usage increment failed", identity=identity, error=str(e))
            raise StorageWriteError("Failed to increment device usage", identity=identity) from e

        count, accepted = int(count), bool(int(accepted))
        log.debug("device usage incremented", identity=identity, count=count, accepted=accepted)
        return count, accepted
