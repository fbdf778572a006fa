"""Core services: classification, incident lifecycle, queries, analytics and live broadcast."""
