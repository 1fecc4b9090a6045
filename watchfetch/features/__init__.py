"""Feature modules for watchfetch."""
