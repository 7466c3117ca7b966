"""Domain packages for the social graph and engagement core."""
