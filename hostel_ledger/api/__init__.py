"""HTTP surface: dependency wiring, result rendering and versioned routers."""
