from typing import Any

from pydantic import BaseModel

DEFAULT_NAMESPACE = "default"

FILTER_OPERATORS = {
    "=": "equal",
    "<": "lessThan",
    "<=": "lessThanOrEqual",
    ">": "greaterThan",
    ">=": "greaterThanOrEqual",
    "HAS_ANCESTOR": "hasAncestor",
}


class QueryException(Exception):
    pass


class KindExpression(BaseModel):
    namespace: str = DEFAULT_NAMESPACE
    kind: str


class PropertyFilter(BaseModel):
    name: str
    operator: str
    value: Any


class PropertyOrder(BaseModel):
    name: str
    direction: str = "ascending"


class Query(BaseModel):
    """Describes a query over one dataset. Queries are not executed here.

    Every builder method returns a modified copy, the original is unchanged.
    """

    dataset_id: str
    kinds: list[KindExpression]
    filters: list[PropertyFilter] = []
    orders: list[PropertyOrder] = []
    limit_value: int | None = None
    offset_value: int = 0

    def __init__(self, dataset_id: str, kinds: list[Any], **data):
        super().__init__(
            dataset_id=dataset_id,
            kinds=[_kind_expression(k) for k in kinds],
            **data,
        )

    def filter(self, name: str, operator: str, value: Any) -> "Query":
        if operator not in FILTER_OPERATORS:
            raise QueryException(
                f"Unknown operator {operator}, expected one of"
                f" {list(FILTER_OPERATORS)}"
            )
        return self.model_copy(
            update={
                "filters": [
                    *self.filters,
                    PropertyFilter(name=name, operator=operator, value=value),
                ]
            }
        )

    def order(self, name: str) -> "Query":
        """order by ``name``, a leading ``-`` sorts descending"""
        if name.startswith("-"):
            order = PropertyOrder(name=name[1:], direction="descending")
        else:
            order = PropertyOrder(name=name)
        return self.model_copy(update={"orders": [*self.orders, order]})

    def limit(self, n: int) -> "Query":
        return self.model_copy(update={"limit_value": n})

    def offset(self, n: int) -> "Query":
        return self.model_copy(update={"offset_value": n})


def _kind_expression(value: Any) -> KindExpression:
    if isinstance(value, KindExpression):
        return value
    elif isinstance(value, str):
        return KindExpression(kind=value)
    elif isinstance(value, dict):
        return KindExpression(
            namespace=value.get("ns", value.get("namespace", DEFAULT_NAMESPACE)),
            kind=value["kind"],
        )
    raise QueryException(f"Cannot build a kind expression from {value!r}")
