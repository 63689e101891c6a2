"""Content item domain: fields, lifecycle states and errors."""
