"""Shared helpers: exceptions, environment flags, logging, clocks."""
