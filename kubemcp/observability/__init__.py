"""Logging and metrics for kubemcp."""
