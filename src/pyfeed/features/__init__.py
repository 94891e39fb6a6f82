"""Domain slices of the feed: auth, posts, users and notifications."""
