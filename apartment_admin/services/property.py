from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..core.errors import DomainValidationError
from ..models.models import Apartment, Block, Flat, Resident
from .audit import audit_log
from .ledger_store import LedgerStore, snapshot

APARTMENT_FIELDS = ("name", "address", "city", "district", "total_blocks", "total_flats")
BLOCK_FIELDS = ("apartment_id", "name", "total_floors", "total_flats")
FLAT_FIELDS = ("apartment_id", "block_id", "flat_number", "floor", "type", "owner_id", "tenant_id", "occupancy_status")


def _refresh_counters(store: LedgerStore, apartment: Apartment) -> None:
    total_blocks = store.query(Block, apartment_id=apartment.id).count()
    total_flats = store.query(Flat, apartment_id=apartment.id).count()
    if (apartment.total_blocks, apartment.total_flats) != (total_blocks, total_flats):
        store.update(apartment, total_blocks=total_blocks, total_flats=total_flats)


# --- Apartments ---


def create_apartment(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Apartment:
    store = LedgerStore(db)
    apartment = store.create(Apartment, **{**data, "total_blocks": 0, "total_flats": 0, "created_by": actor.user_id})
    audit_log(
        db,
        actor,
        action="create",
        entity_type="apartment",
        entity_id=apartment.id,
        new_value=data,
        description=f"Apartment created: {apartment.name}",
    )
    return apartment


def update_apartment(db: Session, actor: AdminSession, apartment_id: str, changes: Dict[str, Any]) -> Apartment:
    store = LedgerStore(db)
    apartment = store.require(Apartment, apartment_id)
    before = snapshot(apartment, APARTMENT_FIELDS)
    store.update(apartment, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="apartment",
        entity_id=apartment.id,
        old_value=before,
        new_value=changes,
        description=f"Apartment updated: {before['name']}",
    )
    return apartment


def delete_apartment(db: Session, actor: AdminSession, apartment_id: str) -> None:
    store = LedgerStore(db)
    apartment = store.require(Apartment, apartment_id)
    store.soft_delete(apartment)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="apartment",
        entity_id=apartment.id,
        description=f"Apartment deleted: {apartment.name}",
    )


def list_apartments(db: Session) -> List[Apartment]:
    store = LedgerStore(db)
    return store.all(store.query(Apartment).order_by(Apartment.name.asc()))


# --- Blocks ---


def create_block(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Block:
    store = LedgerStore(db)
    apartment = store.require(Apartment, data["apartment_id"])
    block = store.create(Block, **data)
    _refresh_counters(store, apartment)
    audit_log(
        db,
        actor,
        action="create",
        entity_type="block",
        entity_id=block.id,
        new_value=data,
        description=f"Block created: {block.name}",
    )
    return block


def update_block(db: Session, actor: AdminSession, block_id: str, changes: Dict[str, Any]) -> Block:
    store = LedgerStore(db)
    block = store.require(Block, block_id)
    before = snapshot(block, BLOCK_FIELDS)
    store.update(block, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="block",
        entity_id=block.id,
        old_value=before,
        new_value=changes,
        description=f"Block updated: {before['name']}",
    )
    return block


def delete_block(db: Session, actor: AdminSession, block_id: str) -> None:
    store = LedgerStore(db)
    block = store.require(Block, block_id)
    store.soft_delete(block)
    apartment = store.get(Apartment, block.apartment_id)
    if apartment:
        _refresh_counters(store, apartment)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="block",
        entity_id=block.id,
        description=f"Block deleted: {block.name}",
    )


def list_blocks(db: Session, apartment_id: Optional[str] = None) -> List[Block]:
    store = LedgerStore(db)
    filters = {"apartment_id": apartment_id} if apartment_id else {}
    return store.all(store.query(Block, **filters).order_by(Block.name.asc()))


# --- Flats ---


def create_flat(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Flat:
    store = LedgerStore(db)
    block = store.require(Block, data["block_id"])
    flat = store.create(Flat, **{**data, "apartment_id": block.apartment_id, "owner_id": None, "tenant_id": None})
    apartment = store.get(Apartment, block.apartment_id)
    if apartment:
        _refresh_counters(store, apartment)
    audit_log(
        db,
        actor,
        action="create",
        entity_type="flat",
        entity_id=flat.id,
        new_value={**data, "apartment_id": block.apartment_id},
        description=f"Flat created: {flat.flat_number}",
    )
    return flat


def update_flat(db: Session, actor: AdminSession, flat_id: str, changes: Dict[str, Any]) -> Flat:
    store = LedgerStore(db)
    flat = store.require(Flat, flat_id)
    before = snapshot(flat, FLAT_FIELDS)
    store.update(flat, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="flat",
        entity_id=flat.id,
        old_value=before,
        new_value=changes,
        description=f"Flat updated: {before['flat_number']}",
    )
    return flat


def delete_flat(db: Session, actor: AdminSession, flat_id: str) -> None:
    store = LedgerStore(db)
    flat = store.require(Flat, flat_id)
    store.soft_delete(flat)
    apartment = store.get(Apartment, flat.apartment_id)
    if apartment:
        _refresh_counters(store, apartment)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="flat",
        entity_id=flat.id,
        description=f"Flat deleted: {flat.flat_number}",
    )


def list_flats(db: Session, block_id: Optional[str] = None, apartment_id: Optional[str] = None) -> List[Flat]:
    """Flats in a block, or in a whole apartment when no block is given."""
    store = LedgerStore(db)
    if block_id:
        query = store.query(Flat, block_id=block_id)
    elif apartment_id:
        query = store.query(Flat, apartment_id=apartment_id)
    else:
        query = store.query(Flat)
    return store.all(query.order_by(Flat.floor.asc(), Flat.flat_number.asc()))


def assign_resident(db: Session, actor: AdminSession, flat_id: str, resident_id: str, role: str) -> Flat:
    store = LedgerStore(db)
    flat = store.require(Flat, flat_id)
    store.require(Resident, resident_id)
    if role not in ("owner", "tenant"):
        raise DomainValidationError(f"Unknown flat role {role!r}.")
    before = snapshot(flat, ("owner_id", "tenant_id", "occupancy_status"))
    field = "owner_id" if role == "owner" else "tenant_id"
    store.update(flat, **{field: resident_id, "occupancy_status": "occupied"})
    audit_log(
        db,
        actor,
        action="update",
        entity_type="flat",
        entity_id=flat.id,
        old_value=before,
        new_value={field: resident_id, "occupancy_status": "occupied"},
        description=f"Flat {flat.flat_number}: {role} assigned",
    )
    return flat
