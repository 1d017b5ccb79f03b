from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select
from .models import Workplace, WorkplaceType
from .schemas import WorkplaceCreate, WorkplaceUpdate

def get_workplaces(db: Session, *, type: Optional[WorkplaceType] = None) -> List[Workplace]:
    stmt = select(Workplace)
    if type is not None:
        stmt = stmt.where(Workplace.type == type)
    stmt = stmt.order_by(Workplace.name.asc(), Workplace.id.asc())
    return list(db.scalars(stmt))

def get_workplace(db: Session, workplace_id: int) -> Optional[Workplace]:
    return db.get(Workplace, workplace_id)

def create_workplace(db: Session, wp: WorkplaceCreate) -> Workplace:
    db_wp = Workplace(**wp.model_dump())
    db.add(db_wp)
    db.commit()
    db.refresh(db_wp)
    return db_wp

def update_workplace(db: Session, workplace_id: int, patch: WorkplaceUpdate) -> Optional[Workplace]:
    db_wp = db.get(Workplace, workplace_id)
    if not db_wp:
        return None
    data = patch.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(db_wp, k, v)
    db.commit()
    db.refresh(db_wp)
    return db_wp

def delete_workplace(db: Session, workplace_id: int) -> None:
    db_wp = db.get(Workplace, workplace_id)
    if db_wp:
        db.delete(db_wp)
        db.commit()
    return
