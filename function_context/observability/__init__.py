"""Logging setup for the runtime's own diagnostics.

Function output never goes through here; it goes to the invocation's LogSink.
"""
