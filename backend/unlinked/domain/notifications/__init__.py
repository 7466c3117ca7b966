"""Notification ledger and listing."""
