"""Repository helpers for database operations.

`PatientRecordRepository` is the only path the API uses to touch
patient-scoped tables: every method runs the record access policy for the
caller before it builds a query.
"""

from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Optional, List
from database.models import Base, Account
from core.policy import RecordType, AccessMode, ensure_patient_record_access

T = TypeVar('T', bound=Base)


class PatientRecordRepository(Generic[T]):
    """Policy-checked access to one patient-scoped model.

    Attributes:
        model: SQLAlchemy model class with a `patient_id` column.
        session: Database session for executing queries.
        caller: Account on whose behalf queries run.
        record_type: Record type the policy is evaluated for.
    """

    def __init__(self, model: Type[T], session: Session, caller: Account, record_type: RecordType):
        self.model = model
        self.session = session
        self.caller = caller
        self.record_type = record_type

    def _authorize(self, patient_id: int, mode: AccessMode) -> None:
        ensure_patient_record_access(self.session, self.caller, patient_id, self.record_type, mode)

    def _query(self, patient_id: int):
        return self.session.query(self.model).filter(self.model.patient_id == patient_id)

    def latest(self, patient_id: int, mode: AccessMode = AccessMode.READ) -> Optional[T]:
        """Return the patient's newest row by creation time, or None."""
        self._authorize(patient_id, mode)
        return self._query(patient_id).order_by(self.model.created_at.desc(), self.model.id.desc()).first()

    def list(self, patient_id: int, order_by=None, limit: int = 100) -> List[T]:
        """Return up to `limit` of the patient's rows, newest first by default."""
        self._authorize(patient_id, AccessMode.READ)
        order_by = order_by if order_by is not None else self.model.created_at.desc()
        return self._query(patient_id).order_by(order_by).limit(limit).all()

    def add(self, patient_id: int, obj: T) -> T:
        """Persist a new row for the patient."""
        self._authorize(patient_id, AccessMode.WRITE)
        obj.patient_id = patient_id
        return save(self.session, obj)

    def update(self, patient_id: int, obj: T, mode: AccessMode = AccessMode.WRITE) -> T:
        """Commit changes made to one of the patient's rows."""
        self._authorize(patient_id, mode)
        self.session.commit()
        self.session.refresh(obj)
        return obj


def save(session: Session, obj: Base) -> Base:
    """Convenience function to add, commit and refresh an object.

    Args:
        session: Database session.
        obj: Model instance to persist.

    Returns:
        The persisted object with refreshed attributes.
    """
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj
