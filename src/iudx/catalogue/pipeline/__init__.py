from .query import QueryPlan, TranslationFault, parse_filter_string, to_query
from .types import Action, CatalogueCommand, Completed, Failed, InboundRequest

__all__ = [
    "Action",
    "CatalogueCommand",
    "Completed",
    "Failed",
    "InboundRequest",
    "QueryPlan",
    "TranslationFault",
    "parse_filter_string",
    "to_query",
]
