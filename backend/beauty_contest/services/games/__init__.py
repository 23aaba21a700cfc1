"""Game domain services: rules, scoring, timers and the round lifecycle.

This package contains the round engine. Socket handlers and HTTP routes
import it; nothing in here knows about the transport.
"""
