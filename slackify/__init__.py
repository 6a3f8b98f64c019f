"""Slack bot that controls a Spotify account."""
