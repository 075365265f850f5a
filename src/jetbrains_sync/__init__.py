"""Keep JetBrains IDE vmoptions and license files in sync with a project archive."""

__version__ = "0.3.0"
