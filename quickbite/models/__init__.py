# Import all models here so SQLAlchemy registers them with Base.metadata
from quickbite.models.menu_item import MenuItem

__all__ = ["MenuItem"]
