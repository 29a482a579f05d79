"""Report aggregation and rendering."""
