"""Cross-app helpers shared by every domain app."""
