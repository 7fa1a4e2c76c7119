"""
telstore: business telemetry for request handlers and event consumers.

Collects structured observational data while a unit of work runs and emits
it as a single structured log record when the unit of work ends.
"""

__version__ = "0.1.0"
