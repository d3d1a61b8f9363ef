from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase


class BaseSQL(DeclarativeBase):
    """Shared metadata for the jobs, records and price_estimates tables.

    Constraint names follow a fixed convention so that migrations generated
    against different backends agree.
    """

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )
