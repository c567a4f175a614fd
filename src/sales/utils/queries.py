"""Repository lookups shared by handlers and read models."""

from protean.utils.globals import current_domain

# Protean querysets are paginated; listings here always want every match
MAX_RESULTS = 100_000


def find_all(aggregate_cls, **filters) -> list:
    """Every record of ``aggregate_cls`` whose fields equal ``filters``."""
    query = current_domain.repository_for(aggregate_cls)._dao.query
    if filters:
        query = query.filter(**filters)
    return list(query.limit(MAX_RESULTS).all().items)


def find_first(aggregate_cls, **filters):
    """The first matching record, or None."""
    return current_domain.repository_for(aggregate_cls)._dao.query.filter(**filters).all().first
