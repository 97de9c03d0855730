"""Directions provider access, response cache and refresh scheduling."""
