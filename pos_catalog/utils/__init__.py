from .config_loader import CatalogConfig, load_catalog_config

__all__ = ["CatalogConfig", "load_catalog_config"]
