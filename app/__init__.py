"""Order dashboard gateway - proxy service in front of the order/document backend API."""

__version__ = "0.1.0"
