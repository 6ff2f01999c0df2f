"""Session pool: resident providers plus the shared response cache.

Holds everything that would otherwise be rebuilt on every CLI invocation.
One instance lives for the whole daemon process and is passed explicitly
to every connection handler.

Locking: the cache lock covers a single get or set call and the registry
lock covers a single lookup-or-insert. Neither is held while a provider is
generating, so a slow backend never blocks other connections' cache hits.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional, Tuple

from askai.cache.prewarming import prewarm
from askai.cache.response import ResponseCache
from askai.config import Settings
from askai.providers.base import Provider
from askai.providers.factory import create_provider

logger = logging.getLogger(__name__)

ProviderBuilder = Callable[[str], Provider]


class SessionPool:
    def __init__(
        self,
        cache: ResponseCache,
        settings: Optional[Settings] = None,
        provider_builder: Optional[ProviderBuilder] = None,
    ):
        """
        Args:
            cache: Shared response cache (owned by the daemon)
            settings: User settings passed to the provider factory
            provider_builder: Override for provider construction (name -> Provider)
        """
        self.cache = cache
        self.settings = settings or Settings()
        self._build_provider = provider_builder or (
            lambda name: create_provider(name, self.settings)
        )
        self._providers: Dict[str, Provider] = {}
        self._cache_lock = asyncio.Lock()
        self._registry_lock = asyncio.Lock()

    async def _get_or_create_provider(self, provider_name: str) -> Provider:
        key = provider_name.lower()
        async with self._registry_lock:
            provider = self._providers.get(key)
            if provider is None:
                provider = self._build_provider(key)
                self._providers[key] = provider
                logger.info(f"Provider '{key}' loaded")
            return provider

    async def prewarm_provider(self, provider_name: str) -> None:
        """
        Load a provider ahead of the first request.

        The provider is only registered if its backend is available.
        """
        key = provider_name.lower()
        async with self._registry_lock:
            if key in self._providers:
                return
        provider = self._build_provider(key)
        await provider.check_installation()
        async with self._registry_lock:
            self._providers.setdefault(key, provider)

    async def generate_command(
        self, prompt: str, context: str, provider_name: str
    ) -> Tuple[str, bool]:
        """
        Return (command, from_cache).

        Cache first; on a miss the provider is resolved, invoked without any
        lock held, and the result is stored.
        """
        async with self._cache_lock:
            cached = self.cache.get(prompt, context)
        if cached is not None:
            return cached, True

        provider = await self._get_or_create_provider(provider_name)
        command = await provider.generate_command(prompt, context)

        async with self._cache_lock:
            self.cache.set(prompt, context, command)
        return command, False

    async def prewarm_cache(self, context: str) -> int:
        async with self._cache_lock:
            return prewarm(self.cache, context)

    async def clear_cache(self) -> None:
        async with self._cache_lock:
            self.cache.clear()

    async def save_cache(self) -> bool:
        async with self._cache_lock:
            return self.cache.save()

    async def provider_count(self) -> int:
        async with self._registry_lock:
            return len(self._providers)
