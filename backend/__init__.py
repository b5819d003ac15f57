"""Resume review platform backend."""
