"""Cross-cutting building blocks: cache, errors, logging and record schemas."""
