"""Version information for the APICore Python SDK"""

__version__ = "0.1.0"
