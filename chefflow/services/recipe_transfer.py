"""
Recipe export / import (JSON files) and printable HTML.

Export files keep the field names used by earlier exports (recipeName,
image, createdAt, ...) so files produced elsewhere can be imported back.
"""
import html
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.models.recipe import Recipe
from chefflow.services.recipe_book import (
    SVG_DATA_URI_MARKER,
    append_category,
    clean_lines,
    fetch_recipes,
    list_categories,
    normalize_images,
)

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


class RecipeImportError(ValueError):
    """Import payload is not a recipes export"""


def export_filename(restaurant_id: str, today: Optional[datetime] = None) -> str:
    today = today or datetime.utcnow()
    return f"recipes-export-{restaurant_id}-{today.strftime('%Y-%m-%d')}.json"


def recipe_to_export(recipe: Recipe) -> dict:
    return {
        "id": str(recipe.id),
        "category": recipe.category,
        "recipeName": recipe.recipe_name,
        "image": normalize_images(recipe.images),
        "ingredients": list(recipe.ingredients or []),
        "instructions": list(recipe.instructions or []),
        "notes": recipe.notes or "",
        "createdAt": recipe.created_at.isoformat() if recipe.created_at else None,
    }


async def export_recipes(db: AsyncSession, restaurant_id: str) -> dict:
    categories = await list_categories(db, restaurant_id)
    recipes = await fetch_recipes(db, restaurant_id)
    logger.info(f"Exporting {len(recipes)} recipes for {restaurant_id}")
    return {
        "exportedAt": datetime.utcnow().isoformat() + "Z",
        "exportVersion": EXPORT_VERSION,
        "restaurantId": restaurant_id,
        "categories": categories,
        "recipes": [recipe_to_export(r) for r in recipes],
    }


def validate_import_payload(payload) -> tuple[list, list]:
    if not isinstance(payload, dict) or not isinstance(payload.get("recipes"), list):
        raise RecipeImportError("Invalid file format. Missing recipes array.")
    if not isinstance(payload.get("categories"), list):
        raise RecipeImportError("Invalid file format. Missing categories array.")
    return payload["recipes"], payload["categories"]


def _string_list(item: dict, key: str) -> list[str]:
    value = item.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return clean_lines(value)


def imported_recipe_fields(item: dict) -> dict:
    """
    Recipe columns for one export entry.

    Non-string list entries and blank lines are dropped. A value of the wrong
    type (text where a list belongs, a number for the name or notes) raises
    ValueError so the entry is skipped.
    """
    category = item.get("category")
    if not isinstance(category, str) or not category.strip():
        raise ValueError("recipe has no category")

    name = item.get("recipeName") or item.get("recipe name") or "Imported Recipe"
    if not isinstance(name, str):
        raise ValueError("recipe name must be text")

    notes = item.get("notes")
    if notes is None:
        notes = ""
    if not isinstance(notes, str):
        raise ValueError("notes must be text")

    image = item.get("image")
    if image is not None and not isinstance(image, (str, list)):
        raise ValueError("image must be a URL or a list of URLs")

    return {
        "category": category.strip(),
        "recipe_name": name.strip() or "Imported Recipe",
        "images": normalize_images(image),
        "ingredients": _string_list(item, "ingredients"),
        "instructions": _string_list(item, "instructions"),
        "notes": notes,
    }


async def import_recipes(db: AsyncSession, restaurant_id: str, payload) -> dict:
    """
    Merge categories and add every recipe in payload as a new row.

    Existing categories keep their order and new ones are appended. Recipes
    without a category (or otherwise unusable) are counted as skipped.
    """
    recipes, categories = validate_import_payload(payload)

    known = await list_categories(db, restaurant_id)
    for name in categories:
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()
        if name not in known:
            await append_category(db, restaurant_id, name)
            known.append(name)

    imported = 0
    skipped = 0
    now = datetime.utcnow()

    for item in recipes:
        name = None
        try:
            if not isinstance(item, dict):
                raise ValueError("recipe entry is not an object")
            fields = imported_recipe_fields(item)
            name = fields["recipe_name"]
            category = fields["category"]

            new_category = category not in known
            async with db.begin_nested():
                if new_category:
                    await append_category(db, restaurant_id, category)
                db.add(Recipe(restaurant_id=restaurant_id, created_at=now, **fields))
            if new_category:
                known.append(category)
            imported += 1
        except Exception as e:
            logger.error(f"Error importing recipe {name}: {e}")
            skipped += 1

    logger.info(f"Imported {imported} recipes into {restaurant_id} ({skipped} skipped)")
    return {
        "imported": imported,
        "skipped": skipped,
        "message": f"Import completed! {imported} recipes imported, {skipped} skipped.",
    }


# --- Printing ---

PRINT_STYLE = """
  @media print { @page { margin: 0.5in; size: A4; } body { background: white; } }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif;
         line-height: 1.6; color: #333; background: #f8fafc; margin: 0; padding: 20px; }
  .recipe-container { max-width: 800px; margin: 0 auto; background: white;
                      border-radius: 18px; padding: 32px; }
  .page-break { page-break-after: always; }
  .recipe-title { font-size: 26px; font-weight: bold; text-align: center; }
  .recipe-category { text-align: center; color: #3182ce; font-weight: 600; margin-bottom: 24px; }
  .recipe-images { text-align: center; margin-bottom: 32px; }
  .recipe-image { width: 300px; height: 200px; object-fit: cover; border-radius: 18px; margin: 8px; }
  .section-title { font-size: 20px; font-weight: bold; margin: 24px 0 16px; text-align: center; }
  .notes-section { background: #fef3c7; border: 1px solid #f59e0b; border-radius: 14px; padding: 16px; }
  .print-date { text-align: center; color: #718096; font-size: 14px; margin-top: 32px;
                border-top: 1px solid #e2e8f0; padding-top: 16px; }
"""


def _recipe_body(recipe: Recipe) -> str:
    e = html.escape
    parts = [
        f'<h1 class="recipe-title">{e(recipe.recipe_name)}</h1>',
        f'<div class="recipe-category">Category: {e(recipe.category)}</div>',
    ]

    images = [img for img in normalize_images(recipe.images) if SVG_DATA_URI_MARKER not in img]
    if images:
        tags = "".join(f'<img src="{e(img)}" alt="Recipe image" class="recipe-image" />' for img in images)
        parts.append(f'<div class="recipe-images">{tags}</div>')

    if recipe.ingredients:
        parts.append('<div class="section-title">Ingredients</div>')
        parts.append("<ul>" + "".join(f"<li>{e(i)}</li>" for i in recipe.ingredients) + "</ul>")

    if recipe.instructions:
        parts.append('<div class="section-title">Instructions</div>')
        parts.append("<ol>" + "".join(f"<li>{e(i)}</li>" for i in recipe.instructions) + "</ol>")

    if recipe.notes and recipe.notes.strip():
        parts.append('<div class="section-title">Allergens &amp; Notes</div>')
        parts.append(f'<div class="notes-section"><p>{e(recipe.notes)}</p></div>')

    return "\n".join(parts)


def render_print_html(recipes: list[Recipe], title: str, printed_on: Optional[datetime] = None) -> str:
    """Printable HTML for one or many recipes, a page break between each"""
    printed_on = printed_on or datetime.utcnow()
    blocks = []
    for index, recipe in enumerate(recipes):
        css = "recipe-container page-break" if index < len(recipes) - 1 else "recipe-container"
        blocks.append(f'<div class="{css}">\n{_recipe_body(recipe)}\n</div>')

    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<title>{html.escape(title)}</title>\n"
        f"<style>{PRINT_STYLE}</style>\n</head>\n<body>\n"
        + "\n".join(blocks)
        + f'\n<div class="print-date">Printed on {printed_on.strftime("%d/%m/%Y")} from ChefFlow Admin</div>\n'
        "</body>\n</html>\n"
    )
