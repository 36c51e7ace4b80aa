"""HTTP routers, one per component."""
