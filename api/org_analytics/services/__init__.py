"""GitHub client and the analytics pipeline components."""
