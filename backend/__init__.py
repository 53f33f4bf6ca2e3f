"""
Backend package: stateless Flask REST API over otp_generator.
"""

from .app import create_app

__all__ = ['create_app']
