# shopcart/repos/reservation_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcart.data.models.reservation import ReservationModel
from shopcart.repos.base import persistence_guard


class ReservationRepo:
    def __init__(self, db: Session):
        self.db = db

    @persistence_guard
    def create(self, reservation: ReservationModel) -> ReservationModel:
        self.db.add(reservation)
        self.db.commit()
        self.db.refresh(reservation)
        return reservation

    @persistence_guard
    def get(self, reservation_id: int) -> ReservationModel | None:
        return self.db.get(ReservationModel, reservation_id, populate_existing=True)

    @persistence_guard
    def transition(self, reservation_id: int, from_status: str, to_status: str) -> int:
        # warunkowa zmiana stanu, tylko jeden wywolujacy wygra
        result = self.db.execute(
            update(ReservationModel)
            .where(
                ReservationModel.id == reservation_id,
                ReservationModel.status == from_status,
            )
            .values(status=to_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    @persistence_guard
    def find_stale(self, status: str, older_than: datetime) -> List[int]:
        return list(
            self.db.execute(
                select(ReservationModel.id)
                .where(
                    ReservationModel.status == status,
                    ReservationModel.created_at < older_than,
                )
                .order_by(ReservationModel.id)
            ).scalars()
        )
