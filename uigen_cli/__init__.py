"""UIGen CLI: evidence fusion, context synthesis, and quality review for generated UI components."""

__version__ = "0.1.0"
