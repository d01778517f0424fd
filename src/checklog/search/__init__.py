"""Pattern sets and predicate chains."""
