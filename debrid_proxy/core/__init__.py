"""Core domain helpers: exceptions, validation, security and timestamps."""
