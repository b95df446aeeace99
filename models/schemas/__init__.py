"""Marshmallow request/response schemas."""
