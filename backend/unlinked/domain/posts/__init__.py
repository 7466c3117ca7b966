"""Posts, engagement (likes and comments) and feed composition."""
