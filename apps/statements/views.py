from django.db import DatabaseError
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.customers.services import CustomerNotFoundError
from apps.ledger.services import MovementNotFoundError
from .exceptions import InvalidDateRangeError
from .serializers import (
    StatementQuerySerializer,
    StatementSerializer,
    ReceiptSerializer,
    ErrorSerializer,
)
from .services import build_customer_statement, build_movement_receipt


@extend_schema(
    parameters=[
        OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM)'),
        OpenApiParameter('date_from', OpenApiTypes.DATE, description='First day (YYYY-MM-DD)'),
        OpenApiParameter('date_to', OpenApiTypes.DATE, description='Last day (YYYY-MM-DD)'),
    ],
    responses={
        200: StatementSerializer,
        400: ErrorSerializer,
        404: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="Account statement data for one customer, grouped by month.",
    tags=['statements'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_statement(request, customer_id):
    """Customer statement - thin HTTP handler."""
    query_serializer = StatementQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        statement = build_customer_statement(
            owner=request.user,
            link_id=customer_id,
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
        )
    except InvalidDateRangeError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except DatabaseError:
        return Response(
            {'error': 'Statement data is temporarily unavailable, please retry'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    return Response(StatementSerializer(statement).data)


@extend_schema(
    responses={200: ReceiptSerializer, 404: ErrorSerializer},
    description="Receipt data for one movement, including the QR payload.",
    tags=['statements'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movement_receipt(request, movement_id):
    """Movement receipt - thin HTTP handler."""
    try:
        receipt = build_movement_receipt(owner=request.user, movement_id=movement_id)
    except (MovementNotFoundError, CustomerNotFoundError) as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(ReceiptSerializer(receipt).data)
