"""KohakuIPAM: address management backend for Docker network plugins."""

__version__ = "0.1.0"
