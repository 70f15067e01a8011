"""
Redis Secure Link Repository

Shared implementation of SecureUrlMappingRepository. Every process that
resolves links sees the same mappings, and restarts do not lose them.
"""

import json
import logging
from datetime import datetime
from typing import Iterator, Optional

from securelink.domain.secure_links.entities import SecureUrlMapping
from securelink.domain.secure_links.repositories import SecureUrlMappingRepository
from securelink.domain.secure_links.value_objects import ConsumeOutcome, ConsumeResult

logger = logging.getLogger(__name__)

# Keep expired entries around briefly so resolve() still sees and deletes them
EXPIRY_GRACE_SECONDS = 60

_LIVENESS_HELPERS = """
local function present(value)
    return value ~= nil and value ~= cjson.null
end

local function expired(mapping, now_ms)
    return present(mapping['expires_at_ms']) and now_ms >= tonumber(mapping['expires_at_ms'])
end

local function exhausted(mapping)
    return present(mapping['max_accesses'])
        and tonumber(mapping['access_count']) >= tonumber(mapping['max_accesses'])
end
"""

# Check liveness and count one access in a single server-side step
TRY_CONSUME_SCRIPT = _LIVENESS_HELPERS + """
local data = redis.call('GET', KEYS[1])
if not data then
    return {'not_found'}
end

local mapping = cjson.decode(data)
local now_ms = tonumber(ARGV[1])

if expired(mapping, now_ms) then
    redis.call('DEL', KEYS[1])
    return {'expired'}
end

if exhausted(mapping) then
    redis.call('DEL', KEYS[1])
    return {'exhausted'}
end

mapping['access_count'] = tonumber(mapping['access_count']) + 1
local encoded = cjson.encode(mapping)
redis.call('SET', KEYS[1], encoded, 'KEEPTTL')
return {'consumed', encoded}
"""

DELETE_IF_STALE_SCRIPT = _LIVENESS_HELPERS + """
local data = redis.call('GET', KEYS[1])
if not data then
    return 0
end

local mapping = cjson.decode(data)
if expired(mapping, tonumber(ARGV[1])) or exhausted(mapping) then
    redis.call('DEL', KEYS[1])
    return 1
end
return 0
"""


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisSecureUrlMappingRepository(SecureUrlMappingRepository):
    """
    Redis-based implementation of SecureUrlMappingRepository.

    Each mapping is one JSON string under secure_url:{id}. The Redis TTL is
    the mapping's remaining lifetime plus a grace period, so abandoned links
    disappear even without a sweep. try_consume and the sweep use Lua
    scripts, which Redis runs atomically, for the check-and-mutate steps.
    """

    def __init__(self, redis_repository, key_namespace: str = "secure_url"):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
            key_namespace: Key prefix for mapping entries
        """
        self.redis_repo = redis_repository
        self.key_namespace = key_namespace
        self._try_consume = redis_repository.register_script(TRY_CONSUME_SCRIPT)
        self._delete_if_stale = redis_repository.register_script(DELETE_IF_STALE_SCRIPT)

    def _key(self, secure_id: str) -> str:
        return f"{self.key_namespace}:{secure_id}"

    @staticmethod
    def _serialize(mapping: SecureUrlMapping) -> dict:
        data = mapping.to_dict()
        # Numeric copy of the expiry for the Lua scripts
        data["expires_at_ms"] = _to_millis(mapping.expires_at) if mapping.expires_at else None
        return data

    def insert(self, mapping: SecureUrlMapping) -> bool:
        ttl = None
        if mapping.expires_at is not None:
            remaining = mapping.get_remaining_seconds(mapping.created_at) or 0
            ttl = remaining + EXPIRY_GRACE_SECONDS

        return self.redis_repo.set_json(
            self._key(mapping.id), self._serialize(mapping), ttl=ttl, only_if_absent=True
        )

    def get(self, secure_id: str) -> Optional[SecureUrlMapping]:
        data = self.redis_repo.get_json(self._key(secure_id))
        if data is None:
            return None

        try:
            return SecureUrlMapping.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Error deserializing secure link mapping {secure_id[:6]}...: {e}")
            return None

    def try_consume(self, secure_id: str, now: datetime) -> ConsumeResult:
        reply = self.redis_repo.run_script(
            self._try_consume, keys=[self._key(secure_id)], args=[_to_millis(now)]
        )
        outcome = ConsumeOutcome(_decode(reply[0]))
        if outcome is not ConsumeOutcome.CONSUMED:
            return ConsumeResult(outcome)

        mapping = SecureUrlMapping.from_dict(json.loads(_decode(reply[1])))
        return ConsumeResult(outcome, mapping)

    def delete(self, secure_id: str) -> bool:
        return self.redis_repo.delete(self._key(secure_id))

    def delete_non_live(self, now: datetime) -> int:
        now_ms = _to_millis(now)
        removed = 0
        for key in list(self.redis_repo.iter_keys_by_pattern(f"{self.key_namespace}:*")):
            removed += int(self.redis_repo.run_script(
                self._delete_if_stale, keys=[key], args=[now_ms]
            ))
        return removed

    def iter_all(self) -> Iterator[SecureUrlMapping]:
        prefix_len = len(self.key_namespace) + 1
        for key in self.redis_repo.iter_keys_by_pattern(f"{self.key_namespace}:*"):
            mapping = self.get(key[prefix_len:])
            # Entries can vanish between SCAN and GET
            if mapping is not None:
                yield mapping
