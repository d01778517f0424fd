"""Status line and Prometheus rendering."""
