"""
Lotkeeper Test Suite

Tests are organized by layer:
- test_expiry_classifier.py / test_fifo_allocator.py: pure planning logic
- test_stock_adjustment.py / test_discard.py: stock writes and the audit trail
- test_inventory_queries.py / test_exports.py: read projections and reports
- test_api_routes.py: the JSON API
- test_expiry_sweep.py: CLI maintenance commands
"""
