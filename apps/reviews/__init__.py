"""Reviews app package.

Ratings and comments students leave for cabins and hostels, with
admin moderation and aggregated ratings on the listings.
"""
