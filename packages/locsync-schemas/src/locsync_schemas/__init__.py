"""locsync-schemas: Pydantic models shared by the locsync packages."""

__version__ = "0.1.0"
