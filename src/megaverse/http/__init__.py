"""HTTP transport for the megaverse API."""
