"""Identity store and outbound mail collaborators."""
