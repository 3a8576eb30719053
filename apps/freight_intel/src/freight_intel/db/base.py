"""SQLAlchemy base metadata and model registration utilities."""

from importlib import import_module

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


def import_orm_models() -> None:
    """Import ORM models so metadata is fully populated."""

    modules = (
        "freight_intel.db.models.shipment",
        "freight_intel.db.models.workflow_transition",
        "freight_intel.db.models.document_classification",
    )
    for module_name in modules:
        import_module(module_name)
