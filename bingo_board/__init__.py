"""Shared bingo board sessions: game rules, Redis persistence and change notifications.

The engine is pure; `actions` persists, `client.SessionClient` models one viewer.
"""
