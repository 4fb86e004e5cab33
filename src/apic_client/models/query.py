"""Query settings model."""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .enums import QueryTarget, ResponsePropertyInclude, ResponseSubtree, ResponseSubtreeInclude


class QuerySettings(BaseModel):
    """Options that shape a class or DN query.

    Every option is optional; unset options are left out of the query string
    so the controller applies its own defaults. Instances are immutable, use
    ``model_copy(update=...)`` to derive a variant.

    Example:
        >>> settings = QuerySettings(
        ...     query_target_filter='eq(faultInst.severity,"critical")',
        ...     page_size=100,
        ... )
    """

    model_config = ConfigDict(frozen=True)

    query_target: Optional[QueryTarget] = Field(
        default=None, description="Scope of the search (self, children, subtree)"
    )
    target_subtree_class: Optional[Tuple[str, ...]] = Field(
        default=None, description="Classes to consider within the query target"
    )
    query_target_filter: Optional[str] = Field(
        default=None, description="Filter expression, e.g. 'eq(fvTenant.name,\"common\")'"
    )
    response_subtree: Optional[ResponseSubtree] = Field(
        default=None, description="Part of each object's subtree to return"
    )
    response_subtree_class: Optional[Tuple[str, ...]] = Field(
        default=None, description="Classes to return in response subtrees"
    )
    response_subtree_filter: Optional[str] = Field(
        default=None, description="Filter expression applied to response subtrees"
    )
    response_subtree_include: Optional[ResponseSubtreeInclude] = Field(
        default=None, description="Additional subtrees (faults, health, ...) to return"
    )
    response_property_include: Optional[ResponsePropertyInclude] = Field(
        default=None, description="Which properties to return"
    )
    order_by: Optional[str] = Field(
        default=None, description="Sort expression, e.g. 'faultInst.created|desc'"
    )
    page: Optional[int] = Field(default=None, ge=0, description="Zero-based page number")
    page_size: Optional[int] = Field(default=None, gt=0, description="Objects per page")

    def to_params(self) -> List[Tuple[str, str]]:
        """Render the set options as APIC query-string pairs, in a stable order."""
        params: List[Tuple[str, str]] = []
        if self.query_target is not None:
            params.append(("query-target", self.query_target.value))
        if self.target_subtree_class:
            params.append(("target-subtree-class", ",".join(self.target_subtree_class)))
        if self.query_target_filter:
            params.append(("query-target-filter", self.query_target_filter))
        if self.response_subtree is not None:
            params.append(("rsp-subtree", self.response_subtree.value))
        if self.response_subtree_class:
            params.append(("rsp-subtree-class", ",".join(self.response_subtree_class)))
        if self.response_subtree_filter:
            params.append(("rsp-subtree-filter", self.response_subtree_filter))
        if self.response_subtree_include:
            params.append(("rsp-subtree-include", self.response_subtree_include.rest_value()))
        if self.response_property_include is not None:
            params.append(("rsp-prop-include", self.response_property_include.value))
        if self.order_by:
            params.append(("order-by", self.order_by))
        if self.page is not None:
            params.append(("page", str(self.page)))
        if self.page_size is not None:
            params.append(("page-size", str(self.page_size)))
        return params
