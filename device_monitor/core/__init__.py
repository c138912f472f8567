"""Core: domain model, geo helpers and processing stats."""
