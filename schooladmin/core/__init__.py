"""Core building blocks shared by the server: logging, errors, database and domain rules."""
