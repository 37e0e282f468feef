"""Game domain services: matchmaking, answers, scoring, invites and timers.

This package contains the game mechanics used by the HTTP routes and the
timer worker, keeping transport concerns separated from the rules.
"""
