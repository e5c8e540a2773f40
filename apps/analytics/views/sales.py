import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.response import Response

from apps.analytics.reports import MAX_DAYS, sales_report
from apps.core.exceptions import InvalidInput
from apps.core.openapi import ERROR_RESPONSE
from apps.core.scoping import TenantScopedAPIView

logger = logging.getLogger(__name__)


class SalesReportAPIView(TenantScopedAPIView):
    """
    Revenue, order count and growth for the last ``days`` days against the
    period before, with payment method, top product and daily breakdowns.
    """

    @extend_schema(
        tags=["reports"],
        summary="Sales report",
        parameters=[
            OpenApiParameter("days", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False,
                             description=f"Window length in days, 1..{MAX_DAYS} (default 30)"),
        ],
        responses={200: OpenApiResponse(OpenApiTypes.OBJECT), 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
    )
    def get(self, request):
        raw_days = request.query_params.get('days') or '30'
        try:
            days = int(raw_days)
        except ValueError:
            raise InvalidInput(f"days must be between 1 and {MAX_DAYS}")
        if not 1 <= days <= MAX_DAYS:
            raise InvalidInput(f"days must be between 1 and {MAX_DAYS}")

        return Response(sales_report(self.scope, days=days))
