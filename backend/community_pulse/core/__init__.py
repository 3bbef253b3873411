"""Pure scoring and aggregation core: no I/O, no shared state."""
