"""
Blog Service package.

Serves users and published posts over PostgreSQL, with a Redis cache-aside
layer in front of every read:

- app.main: API surface, health and metrics.
- app.domain: Record models and repository protocols.
- app.persistence: asyncpg repositories for users, posts and user details.
- app.cache: Key derivation, the cache-aside policy and cached repositories.
- app.usecase: Pagination rules, view counting and cache bypass selection.
- app.background: Fire-and-forget view count increments.

Guidelines:
- A cache failure never fails a request; reads fall back to the database.
- Writes hit the database first and invalidate only after they succeed.
"""
