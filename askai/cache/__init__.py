from askai.cache.response import CacheEntry, CacheStats, ResponseCache
from askai.cache.prewarming import COMMON_PROMPTS, prewarm

__all__ = ["CacheEntry", "CacheStats", "ResponseCache", "COMMON_PROMPTS", "prewarm"]
