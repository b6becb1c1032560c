"""Domain layer for fintrack application.

Import services from their modules, e.g. ``fintrack.domain.csv_import``.
"""
