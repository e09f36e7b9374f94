"""Bookings app package.

Seat bookings in reading-room cabins, hostel bed reservations and the
periodic jobs that expire, roll back and release them.
"""
