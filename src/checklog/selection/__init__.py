"""Log file selection: date placeholders and glob resolution."""
