"""Pydantic models for YouTube data, analysis results and personality reports."""
