"""Properties app package.

Reading-room cabins with their seats and hostels with rooms, sharing
options and beds.
"""
