"""Default ordering settings seed."""

from pathlib import Path

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from gusto.db.base import Base
from gusto.db.seed import DEFAULT_ORDERING_SETTINGS, ensure_seed_data
from gusto.models import AppSetting
from gusto.services.settings_service import get_ordering_config, save_setting


def test_seed_inserts_missing_settings_only(tmp_path: Path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'seed.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with session_local() as db:
        save_setting(db, "delivery_fees", "4.00")
        db.commit()

        created = ensure_seed_data(db)
        assert created == len(DEFAULT_ORDERING_SETTINGS) - 1
        assert ensure_seed_data(db) == 0

        assert db.get(AppSetting, "delivery_fees").value == "4.00"
        assert len(db.scalars(select(AppSetting)).all()) == len(DEFAULT_ORDERING_SETTINGS)
        config = get_ordering_config(db)
        assert str(config.delivery_fee) == "4.00"
        assert config.loyalty.enabled is False
