"""Inventory services: allocation, stock adjustment, queries and exports."""
