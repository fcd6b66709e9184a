"""OpenAPI code generator configuration handling, with reference pet store and things WSGI services."""

__version__ = "0.1.0"

__all__ = ["__version__"]