"""jact — dependency-aware coverage reports for Maven projects."""

__version__ = "0.4.0"
