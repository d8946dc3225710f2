"""
Recipe book data access: ordered categories, recipe serialization, the cached
read path and copying recipes into other restaurants.
"""
import logging
from typing import Optional
from urllib.parse import quote

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.models.recipe import Recipe, RecipeCategory
from chefflow.services.recipe_cache import recipe_cache

settings = get_settings()
logger = logging.getLogger(__name__)

_DEFAULT_RECIPE_SVG = (
    '<svg width="300" height="200" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="300" height="200" fill="#f8fafc"/>'
    '<ellipse cx="150" cy="120" rx="60" ry="15" fill="#e2e8f0"/>'
    '<ellipse cx="150" cy="115" rx="55" ry="13" fill="#f1f5f9"/>'
    '<ellipse cx="135" cy="110" rx="18" ry="12" fill="#d97706"/>'
    '<ellipse cx="135" cy="108" rx="15" ry="10" fill="#f59e0b"/>'
    '<circle cx="165" cy="108" r="8" fill="#16a34a"/>'
    '<circle cx="175" cy="112" r="6" fill="#22c55e"/>'
    '<circle cx="155" cy="118" r="5" fill="#dc2626"/>'
    '<circle cx="145" cy="120" r="4" fill="#ea580c"/>'
    '<line x1="80" y1="90" x2="80" y2="130" stroke="#64748b" stroke-width="2"/>'
    '<line x1="220" y1="90" x2="220" y2="130" stroke="#64748b" stroke-width="2"/>'
    '<text x="150" y="170" font-family="Arial, sans-serif" font-size="14" '
    'fill="#64748b" text-anchor="middle">Recipe Image</text>'
    '</svg>'
)

# Placeholder stored when a recipe is saved without images
DEFAULT_RECIPE_IMAGE = "data:image/svg+xml," + quote(_DEFAULT_RECIPE_SVG)

SVG_DATA_URI_MARKER = "data:image/svg+xml"


def normalize_images(value) -> list[str]:
    """Legacy rows store a single image string; always hand back a list"""
    if isinstance(value, list):
        return [img for img in value if isinstance(img, str) and img]
    if isinstance(value, str) and value:
        return [value]
    return []


def clean_lines(lines) -> list[str]:
    """Drop blank ingredient / instruction lines"""
    return [line for line in (lines or []) if isinstance(line, str) and line.strip()]


def prepare_images(images) -> list[str]:
    """Cap the image list and fall back to the placeholder when empty"""
    images = normalize_images(images)[:settings.MAX_RECIPE_IMAGES]
    return images or [DEFAULT_RECIPE_IMAGE]


def serialize_recipe(recipe: Recipe) -> dict:
    """JSON-safe dict, shared by the API responses and the cache"""
    return {
        "id": recipe.id,
        "restaurant_id": recipe.restaurant_id,
        "category": recipe.category,
        "recipe_name": recipe.recipe_name,
        "images": normalize_images(recipe.images),
        "ingredients": list(recipe.ingredients or []),
        "instructions": list(recipe.instructions or []),
        "notes": recipe.notes or "",
        "created_at": recipe.created_at.isoformat() if recipe.created_at else None,
        "updated_at": recipe.updated_at.isoformat() if recipe.updated_at else None,
    }


# --- Categories ---

async def list_categories(db: AsyncSession, restaurant_id: str) -> list[str]:
    result = await db.execute(
        select(RecipeCategory.name)
        .where(RecipeCategory.restaurant_id == restaurant_id)
        .order_by(RecipeCategory.position, RecipeCategory.id)
    )
    return list(result.scalars().all())


async def get_category(db: AsyncSession, restaurant_id: str, name: str) -> Optional[RecipeCategory]:
    result = await db.execute(
        select(RecipeCategory).where(
            RecipeCategory.restaurant_id == restaurant_id,
            RecipeCategory.name == name,
        )
    )
    return result.scalar_one_or_none()


async def append_category(db: AsyncSession, restaurant_id: str, name: str) -> RecipeCategory:
    """Add a category at the end of the restaurant's list"""
    last = await db.scalar(
        select(func.max(RecipeCategory.position)).where(RecipeCategory.restaurant_id == restaurant_id)
    )
    category = RecipeCategory(
        restaurant_id=restaurant_id,
        name=name,
        position=(last + 1) if last is not None else 0,
    )
    db.add(category)
    await db.flush()
    return category


async def ensure_category(db: AsyncSession, restaurant_id: str, name: str) -> bool:
    """Append the category when missing; returns True if it was created"""
    if await get_category(db, restaurant_id, name):
        return False
    await append_category(db, restaurant_id, name)
    return True


# --- Recipes ---

async def fetch_recipes(db: AsyncSession, restaurant_id: str) -> list[Recipe]:
    result = await db.execute(
        select(Recipe)
        .where(Recipe.restaurant_id == restaurant_id)
        .order_by(Recipe.created_at.desc(), Recipe.id.desc())
    )
    return list(result.scalars().all())


async def load_recipe_book(db: AsyncSession, restaurant_id: str) -> tuple[list[dict], list[str], bool]:
    """(recipes, categories, from_cache) for a restaurant"""
    cached = recipe_cache.get(restaurant_id)
    if cached and cached.get("categories"):
        return cached["recipes"], cached["categories"], True

    categories = await list_categories(db, restaurant_id)
    recipes = [serialize_recipe(r) for r in await fetch_recipes(db, restaurant_id)]
    if categories:
        recipe_cache.set(restaurant_id, recipes, categories)
    return recipes, categories, False


def matches_search(recipe: dict, term: str) -> bool:
    term = term.strip().lower()
    if not term:
        return True
    return (
        term in recipe["recipe_name"].lower()
        or term in recipe["category"].lower()
        or any(term in ingredient.lower() for ingredient in recipe["ingredients"])
        or term in (recipe["notes"] or "").lower()
    )


async def copy_recipe_to_restaurants(
    db: AsyncSession,
    fields: dict,
    source_restaurant_id: str,
    target_ids: list[str],
    allowed_ids: list[str],
) -> tuple[list[str], list[dict]]:
    """
    Add a copy of a recipe to each target restaurant.

    Targets equal to the source, or that the user is not a member of, are
    skipped. A failing target is rolled back on its own savepoint and reported.
    Returns (copied_ids, errors).
    """
    copied: list[str] = []
    errors: list[dict] = []

    for target_id in dict.fromkeys(target_ids):
        if target_id == source_restaurant_id:
            continue
        if target_id not in allowed_ids:
            errors.append({"restaurant_id": target_id, "error": "Not a member of this restaurant"})
            continue
        try:
            async with db.begin_nested():
                await ensure_category(db, target_id, fields["category"])
                db.add(Recipe(restaurant_id=target_id, **fields))
            copied.append(target_id)
        except Exception as e:
            logger.error(f"Error copying recipe to {target_id}: {e}")
            errors.append({"restaurant_id": target_id, "error": str(e)})

    return copied, errors
