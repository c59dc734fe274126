"""Core constants: cache key structure and shared literal values.

Single source of truth for cache key segments (DRY). Used by
ltnso.infrastructure.cache.keys and the cache services.
"""

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Fixed discriminators: <entity>:list, <entity>:query:<q>, <entity>:stats
CACHE_SEGMENT_LIST = "list"
CACHE_SEGMENT_QUERY = "query"
CACHE_SEGMENT_STATS = "stats"

# Suffix segments appended by the composable key helpers
CACHE_SEGMENT_PAGE = "page"
CACHE_SEGMENT_LIMIT = "limit"
CACHE_SEGMENT_SORT = "sort"
CACHE_SEGMENT_FILTER = "filter"

# Glob wildcard used by pattern invalidation (Redis SCAN MATCH syntax)
CACHE_PATTERN_ANY = "*"

# Keys deleted per UNLINK round-trip during pattern sweeps
CACHE_SWEEP_CHUNK_SIZE = 500
