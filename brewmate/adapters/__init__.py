"""Storage, key-value, weather and HTTP adapters behind the engine contracts."""
