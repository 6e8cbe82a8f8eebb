"""
AI Booth Image Service

Turns a booth photo and a prompt into an edited image via the Eachlabs
prediction API, and serves the outcome to status pollers.
"""

__version__ = "1.0.0"
