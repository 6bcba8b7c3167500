# apps/inventory/models/__init__.py

from . import item_unit
from . import purchase_type
from . import objective
from . import item
