"""Configuration module for the SSO bridge."""
from .settings import AppConfig, is_truthy, load_settings

__all__ = ["AppConfig", "is_truthy", "load_settings"]
