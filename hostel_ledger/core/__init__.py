"""Core infrastructure: exceptions, logging, middleware, advisory locks."""
