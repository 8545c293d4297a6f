"""FastAPI server for SchoolAdmin."""
