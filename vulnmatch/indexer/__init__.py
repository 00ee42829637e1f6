"""Layer indexing — distribution scanners producing index records."""
