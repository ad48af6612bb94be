from catalog.cache import CacheManager, cache


def get_cache() -> CacheManager:
    """
    FastAPI dependency returning the cache facade for the current request.

    Routers never import the module-level ``cache`` directly, so tests can
    substitute their own manager via ``app.dependency_overrides``.
    """
    return cache
