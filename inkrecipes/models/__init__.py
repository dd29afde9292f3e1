"""
Data Models
===========

Pydantic models for recipes, render inputs, rasters, mixups, markup nodes,
and API responses.
"""
