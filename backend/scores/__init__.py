"""
Live football scores: polls the ESPN college and NFL scoreboards, annotates
teams with their college poll rank, and publishes a snapshot of live games.
"""
