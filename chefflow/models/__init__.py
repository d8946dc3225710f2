from chefflow.models.restaurant import Restaurant, RestaurantMember
from chefflow.models.user import User, UserRole
from chefflow.models.recipe import Recipe, RecipeCategory
from chefflow.models.handover import Handover
from chefflow.models.supplier import Supplier, DeliveryLog
from chefflow.models.fridge import Fridge, FridgeLog
from chefflow.models.checklist import ChecklistItem, ChecklistType
from chefflow.models.system_log import SystemLog

__all__ = [
    "Restaurant",
    "RestaurantMember",
    "User",
    "UserRole",
    "Recipe",
    "RecipeCategory",
    "Handover",
    "Supplier",
    "DeliveryLog",
    "Fridge",
    "FridgeLog",
    "ChecklistItem",
    "ChecklistType",
    "SystemLog",
]
