"""unisearch - universal search with fused matchers, logic operators and history."""

__version__ = "0.1.0"
