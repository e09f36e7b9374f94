"""Notifications app package.

Delivers booking e-mails through Django's mail backend and keeps
in-app notifications that users read through the API.
"""
