from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.security import get_current_admin
from cinema_orders.db.session import get_db
from cinema_orders.models.snack_models import SnackModel
from cinema_orders.schemas.snack_schema import SnackCreate, SnackRead
from cinema_orders.services.notifier import ChangeKind, ChangeNotifier, get_notifier


router = APIRouter(
    prefix="/admin/snacks",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.post("/", response_model=SnackRead, status_code=status.HTTP_201_CREATED)
async def create_snack(
    snack_in: SnackCreate,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    snack = SnackModel(**snack_in.model_dump())
    db.add(snack)
    await db.commit()
    await db.refresh(snack)
    notifier.publish("snacks", ChangeKind.insert, snack.id)
    return snack


@router.get("/", response_model=List[SnackRead])
async def list_snacks(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(SnackModel).order_by(SnackModel.created_at.desc(), SnackModel.id.desc())
    )
    return result.scalars().all()


@router.delete("/{snack_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_snack(
    snack_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    snack = await db.get(SnackModel, snack_id)
    if not snack:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Snack not found"
        )
    await db.delete(snack)
    await db.commit()
    notifier.publish("snacks", ChangeKind.delete, snack_id)
    return None
