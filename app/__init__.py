"""In-memory shopping cart service instrumented with Prometheus metrics."""
