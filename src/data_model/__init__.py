"""Shared data model base classes."""

from src.data_model.base import CamelModel, StrictBaseModel


__all__ = ["CamelModel", "StrictBaseModel"]
