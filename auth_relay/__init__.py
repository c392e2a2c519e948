"""
Auth relay: signup, login, logout and profile endpoints backed by a hosted
identity provider (Amazon Cognito).
"""

__version__ = "0.1.0"
