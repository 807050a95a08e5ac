"""Schemas — Pydantic models at the transport and AI boundaries."""
