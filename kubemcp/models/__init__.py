"""Shared data models for kubemcp."""
