"""Pydantic request/response models and gateway result types."""
