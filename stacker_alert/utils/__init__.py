"""
Shared utilities: structured logging, error tracking and Nostr crypto.
"""
