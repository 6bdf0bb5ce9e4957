from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for the models shown in table views."""


def all_models(base: "type[DeclarativeBase]") -> list:
    """The classes mapped by a declarative base, sorted by name."""
    return sorted(
        (mapper.class_ for mapper in base.registry.mappers),
        key=lambda m: m.__name__,
    )
