"""ZeroBuild - app idea to published React Native project."""

__version__ = "0.1.0"
