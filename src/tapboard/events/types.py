"""Realtime event type constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover every frame the browser may receive.
"""

# Full rating mirror, sent once to each new subscriber
RATINGS_UPDATE = "update"

# One beer's rating changed ({beer, rating, count})
RATING_CHANGED = "rate"

# Keepalive reply to a client "ping"
PONG = "pong"
