"""Core building blocks: paths, projection, gateway API, uploads."""
