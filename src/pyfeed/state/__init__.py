"""State/store layer.

This package is the single source of truth for how fetched feed data is
held in memory: normalized entity collections, the async request
lifecycle, memoized selectors, the store and its listener middleware.
"""
