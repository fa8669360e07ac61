"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from gusto.models import app_setting as _app_setting  # noqa: E402,F401
from gusto.models import audit_log as _audit_log  # noqa: E402,F401
from gusto.models import customer as _customer  # noqa: E402,F401
from gusto.models import delivery as _delivery  # noqa: E402,F401
from gusto.models import order as _order  # noqa: E402,F401
from gusto.models import product as _product  # noqa: E402,F401
from gusto.models import service_period as _service_period  # noqa: E402,F401
