"""Word-addressed data memory."""
