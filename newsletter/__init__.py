"""Newsletter generation backend."""
