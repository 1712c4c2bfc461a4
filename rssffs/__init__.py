"""rssffs: RSS Feed Finder [and] Subscriber."""
