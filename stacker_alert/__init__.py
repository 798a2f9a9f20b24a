"""
Stacker Alert

A terminal watcher that polls the Stacker News "recent" page, picks out
listings from authors, topics and domains you care about, and alerts you
with a sound or an encrypted Nostr direct message.
"""

__version__ = "0.1.0"
__author__ = "Stacker Alert Team"
