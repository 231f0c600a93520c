"""Version information for fieldwarden."""

__version__ = "0.3.0"
__title__ = "fieldwarden"
__description__ = "Field-permission mediation for permissioned data stores"
