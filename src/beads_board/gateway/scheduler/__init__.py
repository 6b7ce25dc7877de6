"""Delayed callback scheduling used for circuit breaker recovery probes."""
