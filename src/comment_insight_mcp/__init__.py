"""YouTube comment viewpoint analysis over MCP."""

__version__ = "0.1.0"
