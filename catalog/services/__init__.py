# Services package.
#
#   product_service : CRUD + read-through cache for Product
#
# Service functions accept an AsyncSession (and, where they touch the
# cache, a CacheManager) as their leading arguments so that the router
# layer controls the transaction boundary via the ``get_db`` dependency
# and the cache via ``get_cache``.
