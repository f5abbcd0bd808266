"""braidview: layout, path diagnostics and replay for braid DAGs."""
