"""
Shared utilities for the Face Metrics Tool.
"""
