"""Spiral PDF server: asynchronous spiral-layout PDF rendering."""
