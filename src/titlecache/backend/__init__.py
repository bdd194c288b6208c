"""Flask HTTP interface for the title cache."""
