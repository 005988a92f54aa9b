"""CyberMoriarty vulnerability intelligence dashboard."""

__version__ = "0.1.0"
