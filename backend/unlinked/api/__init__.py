"""HTTP routers and error mapping."""
