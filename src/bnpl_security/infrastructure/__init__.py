"""Infrastructure adapters: challenge stores, profile sources and providers."""
