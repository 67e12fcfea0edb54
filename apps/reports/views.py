from django.db import DatabaseError
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .exceptions import ReportsServiceError
from .reports import ReportQueries
from .serializers import PeriodQuerySerializer, OverviewResponseSerializer, ErrorSerializer


@extend_schema(
    parameters=[
        OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM)'),
        OpenApiParameter('start_date', OpenApiTypes.DATE, description='Start date (YYYY-MM-DD)'),
        OpenApiParameter('end_date', OpenApiTypes.DATE, description='End date (YYYY-MM-DD)'),
    ],
    responses={
        200: OverviewResponseSerializer,
        400: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="Dashboard overview: customers, movements, totals per currency and commission income.",
    tags=['reports'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overview(request):
    """Owner overview - thin HTTP handler."""
    query_serializer = PeriodQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        data = ReportQueries.owner_overview(
            owner=request.user,
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
    except ReportsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except DatabaseError:
        return Response(
            {'error': 'Report data is temporarily unavailable, please retry'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    return Response(OverviewResponseSerializer(data).data)
