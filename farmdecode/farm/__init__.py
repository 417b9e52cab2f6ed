"""FARM binary decoder."""
