"""Extract hard-coded JSX text into translation keys and rewrite components to use t() lookups."""

__version__ = "0.4.0"
