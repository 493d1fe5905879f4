"""Services package: parsing, normalization, categorization, verification, persistence and aggregation."""
