"""Analysis job tracking and execution."""
