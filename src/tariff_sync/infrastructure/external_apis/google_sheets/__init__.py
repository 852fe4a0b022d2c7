"""Google Sheets REST transport."""
