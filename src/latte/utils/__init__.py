"""Small shared helpers (logging setup, debounce timers)."""
