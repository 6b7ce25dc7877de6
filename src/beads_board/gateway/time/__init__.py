"""Time abstraction so breaker and cache timing can be tested deterministically."""
