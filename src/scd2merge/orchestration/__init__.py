"""Generation flow and statement execution."""
