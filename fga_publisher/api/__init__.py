"""HTTP surface: webhook receiver for admin events plus health checks."""
