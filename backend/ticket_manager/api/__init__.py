"""HTTP layer: routers, middleware and shared dependencies."""
