"""Application-wide constants."""

PROJECT_NAME = "SchoolAdmin"
API_V1_STR = "/api/v1"
