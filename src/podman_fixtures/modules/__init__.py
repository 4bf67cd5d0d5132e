"""Ready-made images for common test dependencies."""
