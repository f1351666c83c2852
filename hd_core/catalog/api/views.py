# hd_core/catalog/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import mixins, viewsets

from hd_core.catalog.api.serializers import (
    DrugSerializer,
    LabPanelSerializer,
    LabTestSerializer,
    PrescriptionSetSerializer,
)
from hd_core.catalog.selectors import drugs_qs, lab_panels_qs, lab_tests_qs, prescription_sets_qs
from hd_core.common.permissions import CatalogPermission

_Q = OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False)
_INACTIVE = OpenApiParameter(
    name="include_inactive",
    type=OpenApiTypes.BOOL,
    location=OpenApiParameter.QUERY,
    required=False,
)


class CatalogViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [CatalogPermission]
    pagination_class = None
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    def include_inactive(self) -> bool:
        if self.action == "retrieve":
            return True
        return self.request.query_params.get("include_inactive") in ("1", "true")

    def search_term(self) -> str:
        return self.request.query_params.get("q", "").strip()


@extend_schema_view(list=extend_schema(tags=["Catalog"], parameters=[_Q, _INACTIVE]), retrieve=extend_schema(tags=["Catalog"]))
class LabTestViewSet(CatalogViewSet):
    serializer_class = LabTestSerializer

    def get_queryset(self):
        return lab_tests_qs(q=self.search_term(), include_inactive=self.include_inactive())


@extend_schema_view(list=extend_schema(tags=["Catalog"], parameters=[_INACTIVE]), retrieve=extend_schema(tags=["Catalog"]))
class LabPanelViewSet(CatalogViewSet):
    serializer_class = LabPanelSerializer

    def get_queryset(self):
        return lab_panels_qs(include_inactive=self.include_inactive())


@extend_schema_view(list=extend_schema(tags=["Catalog"], parameters=[_Q, _INACTIVE]), retrieve=extend_schema(tags=["Catalog"]))
class DrugViewSet(CatalogViewSet):
    serializer_class = DrugSerializer

    def get_queryset(self):
        return drugs_qs(q=self.search_term(), include_inactive=self.include_inactive())


@extend_schema_view(list=extend_schema(tags=["Catalog"], parameters=[_INACTIVE]), retrieve=extend_schema(tags=["Catalog"]))
class PrescriptionSetViewSet(CatalogViewSet):
    serializer_class = PrescriptionSetSerializer

    def get_queryset(self):
        return prescription_sets_qs(include_inactive=self.include_inactive())
