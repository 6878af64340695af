"""Core synchronization, publishing, and configuration logic."""
