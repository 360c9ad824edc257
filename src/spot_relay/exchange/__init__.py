"""Exchange REST access."""
