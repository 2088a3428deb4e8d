from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..core.errors import DomainValidationError
from ..models.models import Flat, Resident
from ..utils.validators import is_valid_tc_no
from .audit import audit_log
from .ledger_store import LedgerStore, snapshot

RESIDENT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "secondary_phone",
    "emergency_contact",
    "emergency_phone",
    "notes",
)


def create_resident(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Resident:
    """Move a resident in: record them and link them to the flat as owner or tenant."""
    if not is_valid_tc_no(data["tc_no"]):
        raise DomainValidationError("Invalid TC Kimlik No.")
    store = LedgerStore(db)
    flat = store.require(Flat, data["flat_id"])
    resident = store.create(
        Resident,
        **{
            **data,
            "block_id": flat.block_id,
            "apartment_id": flat.apartment_id,
            "is_active": True,
            "move_out_date": None,
        },
    )
    link_field = "owner_id" if resident.type == "owner" else "tenant_id"
    store.update(flat, **{link_field: resident.id, "occupancy_status": "occupied"})
    audit_log(
        db,
        actor,
        action="create",
        entity_type="resident",
        entity_id=resident.id,
        new_value={key: value for key, value in data.items() if key != "tc_no"},
        description=f"Resident added: {resident.full_name}",
    )
    return resident


def update_resident(db: Session, actor: AdminSession, resident_id: str, changes: Dict[str, Any]) -> Resident:
    store = LedgerStore(db)
    resident = store.require(Resident, resident_id)
    before = snapshot(resident, RESIDENT_FIELDS)
    store.update(resident, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="resident",
        entity_id=resident.id,
        old_value=before,
        new_value=changes,
        description=f"Resident updated: {before['first_name']} {before['last_name']}",
    )
    return resident


def delete_resident(db: Session, actor: AdminSession, resident_id: str) -> None:
    store = LedgerStore(db)
    resident = store.require(Resident, resident_id)
    store.soft_delete(resident)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="resident",
        entity_id=resident.id,
        description=f"Resident deleted: {resident.full_name}",
    )


def move_out(db: Session, actor: AdminSession, resident_id: str, move_out_date: date) -> Resident:
    """Deactivate a resident without deleting them, and release their slot on the flat."""
    store = LedgerStore(db)
    resident = store.require(Resident, resident_id)
    store.update(resident, is_active=False, move_out_date=move_out_date)

    flat = store.get(Flat, resident.flat_id)
    if flat:
        changes: Dict[str, Any] = {}
        if flat.owner_id == resident.id:
            changes["owner_id"] = None
        if flat.tenant_id == resident.id:
            changes["tenant_id"] = None
        if changes:
            owner_id = changes.get("owner_id", flat.owner_id)
            tenant_id = changes.get("tenant_id", flat.tenant_id)
            if not owner_id and not tenant_id:
                changes["occupancy_status"] = "vacant"
            store.update(flat, **changes)

    audit_log(
        db,
        actor,
        action="update",
        entity_type="resident",
        entity_id=resident.id,
        new_value={"is_active": False, "move_out_date": move_out_date},
        description=f"Resident moved out: {resident.full_name} - {move_out_date.isoformat()}",
    )
    return resident


def list_residents(
    db: Session,
    *,
    flat_id: Optional[str] = None,
    apartment_id: Optional[str] = None,
    active_only: bool = False,
) -> List[Resident]:
    filters: Dict[str, Any] = {}
    if flat_id:
        filters["flat_id"] = flat_id
    if apartment_id:
        filters["apartment_id"] = apartment_id
    if active_only:
        filters["is_active"] = True
    store = LedgerStore(db)
    return store.all(store.query(Resident, **filters).order_by(Resident.last_name.asc(), Resident.first_name.asc()))


def flat_history(db: Session, flat_id: str) -> List[Resident]:
    """Everyone who has lived in the flat, most recent move-in first."""
    store = LedgerStore(db)
    return store.all(store.query(Resident, flat_id=flat_id).order_by(Resident.move_in_date.desc()))
