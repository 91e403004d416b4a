"""Schema management for the domain's relational providers.

Used by the test session and by ``manage.py``. Tables are created from the
SQLAlchemy metadata each provider builds for the aggregates and entities it
stores; raw SQL is never issued here.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

_RELATIONAL = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    return [
        provider for provider in domain.providers.values() if provider.conn_info["provider"] in _RELATIONAL
    ]


def _register_models(domain: Domain, provider) -> None:
    # A model is only added to the provider's metadata once its DAO is built
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create every table the domain's elements need."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            _register_models(domain, provider)
            engine = create_engine(provider.conn_info["database_uri"])
            try:
                provider._metadata.create_all(engine)
            finally:
                engine.dispose()


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            try:
                provider._metadata.drop_all(engine)
            finally:
                engine.dispose()
