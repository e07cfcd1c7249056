"""Infrastructure layer: database, ledger, audience store, locks, graph cache.

Everything is reached through :class:`~profilegate.infrastructure.store.Store`.
"""
