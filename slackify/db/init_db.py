from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from slackify.db.session import ConfigBase, TracksBase
from slackify.models import AuthRecord
import logging

logger = logging.getLogger(__name__)

def _create_missing(engine: Engine, base) -> list:
    """Create the collections of a document file that do not exist yet."""
    existing = set(inspect(engine).get_table_names())
    missing = [name for name in base.metadata.tables if name not in existing]
    base.metadata.create_all(bind=engine)
    for name in missing:
        logger.info(f"Created collection {name} in {engine.url}")
    return missing

def init_db(config_engine: Engine, tracks_engine: Engine) -> bool:
    """
    Initialise both document files.

    Args:
        config_engine: Engine for the auth/config file
        tracks_engine: Engine for the search/history/skip file

    Returns:
        True if the config file already held an auth record, meaning auth
        should be initialised from it.
    """
    _create_missing(config_engine, ConfigBase)
    _create_missing(tracks_engine, TracksBase)

    with Session(config_engine) as session:
        has_auth = session.execute(select(AuthRecord.id).limit(1)).first() is not None

    if not has_auth:
        logger.info("No Spotify configuration found, starting fresh")
    return has_auth
