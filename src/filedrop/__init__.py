"""File Drop relay: event-driven processing of JSON payloads dropped into a bucket."""
