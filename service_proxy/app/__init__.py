"""
Todos Proxy Service package.

The proxy fronts a single upstream JSON API, enforcing:
- Admission: fixed window rate limiting per client address
- Read-through: volatile cache, then local snapshot, then upstream fetch

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: Upstream HTTP client and snapshot file store.
- app.caching: Volatile cache and read-through service.
- app.ratelimit: Fixed window limiter and admission middleware.
- app.refresh: Optional periodic snapshot refresh.
"""
