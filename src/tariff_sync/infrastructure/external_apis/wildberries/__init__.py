"""Wildberries tariffs API transport."""
