"""WBSCalc - equipment lists to Primavera P6 work breakdown structures."""

__version__ = "0.1.0"
