"""
Session gate for the clinic agenda.

A single logged-in user is remembered in the local store. There are no tokens
and no roles beyond the built-in admin account.
"""
