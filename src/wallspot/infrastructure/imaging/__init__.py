"""Image decoding and transformation adapters."""
