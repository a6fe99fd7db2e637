"""API middleware: auth checks and CORS."""
