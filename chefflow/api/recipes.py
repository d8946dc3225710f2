"""
Recipes API - categories, recipes, images, copy to other restaurants,
export / import and printing
"""
import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, File, Form
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.recipe import Recipe
from chefflow.models.restaurant import Restaurant
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.api.restaurants import get_current_restaurant
from chefflow.services.image_storage import ImageStorageError, save_image
from chefflow.services.recipe_book import (
    append_category,
    clean_lines,
    copy_recipe_to_restaurants,
    fetch_recipes,
    get_category,
    list_categories,
    load_recipe_book,
    matches_search,
    prepare_images,
    serialize_recipe,
)
from chefflow.services.recipe_cache import recipe_cache
from chefflow.services.recipe_transfer import (
    RecipeImportError,
    export_filename,
    export_recipes,
    import_recipes,
    render_print_html,
)
from chefflow.services.restaurants import get_member_restaurant_ids

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Schemas ---

class RecipeResponse(BaseModel):
    id: int
    restaurant_id: str
    category: str
    recipe_name: str
    images: List[str]
    ingredients: List[str]
    instructions: List[str]
    notes: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class RecipeListResponse(BaseModel):
    recipes: List[RecipeResponse]
    categories: List[str]
    from_cache: bool


class RecipeSaveResponse(RecipeResponse):
    copied_to: List[str] = []
    copy_errors: List[dict] = []


class RecipeWrite(BaseModel):
    recipe_name: str
    category: str
    images: List[str] = []
    ingredients: List[str] = []
    instructions: List[str] = []
    notes: str = ""
    copy_to_restaurant_ids: List[str] = []

    @field_validator("recipe_name", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class CategoryCreate(BaseModel):
    name: str


# --- Helpers ---

async def _get_recipe_or_404(db: AsyncSession, recipe_id: int, restaurant_id: str) -> Recipe:
    result = await db.execute(
        select(Recipe).where(Recipe.id == recipe_id, Recipe.restaurant_id == restaurant_id)
    )
    recipe = result.scalar_one_or_none()
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


def _recipe_fields(data: RecipeWrite) -> dict:
    return {
        "category": data.category,
        "recipe_name": data.recipe_name,
        "images": prepare_images(data.images),
        "ingredients": clean_lines(data.ingredients),
        "instructions": clean_lines(data.instructions),
        "notes": data.notes,
        "created_at": datetime.utcnow(),
    }


async def _save_copies(
    db: AsyncSession,
    fields: dict,
    restaurant: Restaurant,
    current_user: User,
    target_ids: List[str],
) -> tuple[list[str], list[dict]]:
    if not target_ids:
        return [], []
    member_ids = await get_member_restaurant_ids(db, current_user.id)
    copied, errors = await copy_recipe_to_restaurants(db, fields, restaurant.id, target_ids, member_ids)
    for target_id in target_ids:
        if target_id != restaurant.id:
            recipe_cache.clear(target_id)
    return copied, errors


# --- Categories ---

@router.get("/categories", response_model=List[str])
async def get_categories(
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    return await list_categories(db, restaurant.id)


@router.post("/categories", response_model=List[str])
async def add_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Append a category; names are unique regardless of case"""
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name is required")

    existing = await list_categories(db, restaurant.id)
    if any(c.lower() == name.lower() for c in existing):
        raise HTTPException(status_code=400, detail="Category already exists")

    await append_category(db, restaurant.id, name)
    await db.commit()
    recipe_cache.clear(restaurant.id)
    return existing + [name]


@router.delete("/categories/{name}", response_model=List[str])
async def delete_category(
    name: str,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    category = await get_category(db, restaurant.id, name)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    in_use = await db.scalar(
        select(func.count(Recipe.id)).where(Recipe.restaurant_id == restaurant.id, Recipe.category == name)
    )
    if in_use:
        raise HTTPException(
            status_code=409,
            detail=f"Category has {in_use} recipe(s). Move or delete them first.",
        )

    await db.delete(category)
    await db.commit()
    recipe_cache.clear(restaurant.id)
    return await list_categories(db, restaurant.id)


# --- Images ---

@router.post("/images", response_model=List[str])
async def upload_images(
    files: List[UploadFile] = File(...),
    folder: str = Form("recipes"),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Compress and store recipe photos; returns their download URLs"""
    urls = []
    for upload in files:
        content = await upload.read()
        try:
            urls.append(save_image(restaurant.id, folder, upload.filename, content))
        except ImageStorageError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info(f"User {current_user.id} uploaded {len(urls)} image(s) to {restaurant.id}/{folder}")
    return urls


# --- Export / import / print (before /{recipe_id} routes) ---

@router.get("/export")
async def export_recipe_book(
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    data = await export_recipes(db, restaurant.id)
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(restaurant.id)}"'},
    )


@router.post("/import")
async def import_recipe_book(
    request: Request,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Import an export file, sent as a JSON body or as an uploaded `file`"""
    try:
        if request.headers.get("content-type", "").startswith("multipart/form-data"):
            form = await request.form()
            upload = form.get("file")
            if upload is None or isinstance(upload, str):
                raise HTTPException(status_code=400, detail="No file uploaded")
            payload = json.loads(await upload.read())
        else:
            payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid file format. Could not parse JSON.")

    try:
        result = await import_recipes(db, restaurant.id, payload)
    except RecipeImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await db.commit()
    recipe_cache.clear(restaurant.id)
    return result


@router.get("/print", response_class=HTMLResponse)
async def print_all_recipes(
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    recipes = await fetch_recipes(db, restaurant.id)
    if category:
        recipes = [r for r in recipes if r.category == category]
    if not recipes:
        raise HTTPException(status_code=404, detail="No recipes to print")
    return render_print_html(recipes, title=f"All Recipes - {restaurant.name}")


# --- Recipes ---

@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Recipes of the current restaurant, newest first (served from cache when fresh)"""
    recipes, categories, from_cache = await load_recipe_book(db, restaurant.id)

    if category:
        recipes = [r for r in recipes if r["category"] == category]
    if search:
        recipes = [r for r in recipes if matches_search(r, search)]

    return RecipeListResponse(recipes=recipes, categories=categories, from_cache=from_cache)


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: int,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    recipe = await _get_recipe_or_404(db, recipe_id, restaurant.id)
    return serialize_recipe(recipe)


@router.get("/{recipe_id}/print", response_class=HTMLResponse)
async def print_recipe(
    recipe_id: int,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    recipe = await _get_recipe_or_404(db, recipe_id, restaurant.id)
    return render_print_html([recipe], title=f"Recipe: {recipe.recipe_name}")


@router.post("/", response_model=RecipeSaveResponse)
async def create_recipe(
    data: RecipeWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    if not await get_category(db, restaurant.id, data.category):
        raise HTTPException(status_code=400, detail=f'Category "{data.category}" does not exist')

    fields = _recipe_fields(data)
    recipe = Recipe(restaurant_id=restaurant.id, **fields)
    db.add(recipe)
    await db.flush()

    copied, errors = await _save_copies(db, fields, restaurant, current_user, data.copy_to_restaurant_ids)
    await db.commit()
    await db.refresh(recipe)
    recipe_cache.clear(restaurant.id)

    logger.info(f"Recipe '{recipe.recipe_name}' saved in {restaurant.id} (copied to {copied})")
    return RecipeSaveResponse(**serialize_recipe(recipe), copied_to=copied, copy_errors=errors)


@router.put("/{recipe_id}", response_model=RecipeSaveResponse)
async def update_recipe(
    recipe_id: int,
    data: RecipeWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Update a recipe; a category change moves it to the new category"""
    recipe = await _get_recipe_or_404(db, recipe_id, restaurant.id)
    if not await get_category(db, restaurant.id, data.category):
        raise HTTPException(status_code=400, detail=f'Category "{data.category}" does not exist')

    fields = _recipe_fields(data)
    for key, value in fields.items():
        setattr(recipe, key, value)
    await db.flush()

    copied, errors = await _save_copies(db, fields, restaurant, current_user, data.copy_to_restaurant_ids)
    await db.commit()
    await db.refresh(recipe)
    recipe_cache.clear(restaurant.id)

    return RecipeSaveResponse(**serialize_recipe(recipe), copied_to=copied, copy_errors=errors)


@router.delete("/{recipe_id}")
async def delete_recipe(
    recipe_id: int,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    recipe = await _get_recipe_or_404(db, recipe_id, restaurant.id)
    await db.delete(recipe)
    await db.commit()
    recipe_cache.clear(restaurant.id)
    return {"message": "Recipe deleted"}
