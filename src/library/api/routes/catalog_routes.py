from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.dependencies import get_catalog_service, get_current_staff
from src.library.api.schemas import ItemCreateRequest, ItemResponse, StudentCreateRequest, StudentResponse
from src.library.application.services import CatalogService
from src.library.domain.entities import Item, Student

students_router = APIRouter(
    prefix="/api/v1/students",
    tags=["students"],
    dependencies=[Depends(get_current_staff)],
)
items_router = APIRouter(
    prefix="/api/v1/items",
    tags=["items"],
    dependencies=[Depends(get_current_staff)],
)


@students_router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def register_student(body: StudentCreateRequest, svc: CatalogService = Depends(get_catalog_service)):
    student = await svc.register_student(Student(**body.model_dump()))
    return StudentResponse.model_validate(student)


@students_router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: str, svc: CatalogService = Depends(get_catalog_service)):
    return StudentResponse.model_validate(await svc.get_student(student_id))


@items_router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def add_item(body: ItemCreateRequest, svc: CatalogService = Depends(get_catalog_service)):
    item = await svc.add_item(Item(**body.model_dump()))
    return ItemResponse.model_validate(item)


@items_router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: str, svc: CatalogService = Depends(get_catalog_service)):
    return ItemResponse.model_validate(await svc.get_item(item_id))
