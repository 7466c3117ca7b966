"""Infrastructure adapters (redis, auth, hooks, scheduling)."""
