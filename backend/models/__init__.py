# Importing the package registers every table on Base.metadata
from models.users import User
from models.supplier import Supplier
from models.brand import Brand
from models.product import Product
from models.stock import StockMovement, MovementKind
from models.log import Log

__all__ = ["User", "Supplier", "Brand", "Product", "StockMovement", "MovementKind", "Log"]
