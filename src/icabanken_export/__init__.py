"""Export ICA Banken account statements as structured transactions."""

__version__ = "0.1.0"
