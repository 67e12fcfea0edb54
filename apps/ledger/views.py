import logging

from django.db import DatabaseError
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.customers.services import CustomerNotFoundError
from .serializers import (
    BalanceLineSerializer,
    CurrencySummarySerializer,
    FeedItemSerializer,
    MovementSerializer,
    MovementCreateSerializer,
    MovementUpdateSerializer,
    TransferCreateSerializer,
    RecordedMovementSerializer,
    RecordedTransferSerializer,
)
from .services import (
    record_movement,
    record_internal_transfer,
    list_customer_movements,
    get_customer_balances,
    update_movement,
    delete_movement,
    MovementValidationError,
    MovementNotFoundError,
    PartialWriteError,
)
from .signals import get_ledger_revision

logger = logging.getLogger(__name__)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class PartialWriteResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    rolled_back = serializers.BooleanField()


class RevisionResponseSerializer(serializers.Serializer):
    revision = serializers.IntegerField()


class DeletedResponseSerializer(serializers.Serializer):
    deleted = serializers.IntegerField()
    revision = serializers.IntegerField()


def _unavailable():
    logger.exception("Ledger fetch failed")
    return Response(
        {'error': 'Ledger data is temporarily unavailable, please retry'},
        status=status.HTTP_503_SERVICE_UNAVAILABLE
    )


@extend_schema(
    parameters=[OpenApiParameter('search', str, description="Filter by number, amount, note or date")],
    responses={200: FeedItemSerializer(many=True), 404: ErrorResponseSerializer, 503: ErrorResponseSerializer},
    description="Movement feed of one customer, most recent first.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_movements(request, customer_id):
    """List a customer's movements."""
    # Read before the fetch so a concurrent write can only make it look older
    revision = get_ledger_revision(request.user.id)
    try:
        feed = list_customer_movements(
            owner=request.user,
            link_id=customer_id,
            search=request.query_params.get('search'),
        )
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except DatabaseError:
        return _unavailable()

    return Response({
        'customer_id': str(feed.customer.id),
        'is_profit_loss': feed.customer.is_profit_loss,
        'revision': revision,
        'results': FeedItemSerializer(feed.items, many=True).data,
    })


@extend_schema(
    responses={200: BalanceLineSerializer(many=True), 404: ErrorResponseSerializer, 503: ErrorResponseSerializer},
    description="Current non-zero balances and the incoming/outgoing summary of one customer.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_balances(request, customer_id):
    """Balances of one customer."""
    revision = get_ledger_revision(request.user.id)
    try:
        result = get_customer_balances(owner=request.user, link_id=customer_id)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except DatabaseError:
        return _unavailable()

    return Response({
        'customer_id': str(result.customer.id),
        'balances': BalanceLineSerializer(result.balances, many=True).data,
        'summary': CurrencySummarySerializer(result.summary, many=True).data,
        'revision': revision,
    })


@extend_schema(
    request=MovementCreateSerializer,
    responses={
        201: RecordedMovementSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        500: PartialWriteResponseSerializer,
    },
    description="Record a movement. An incoming movement may carry a commission, "
                "which is posted to the profit and loss account.",
    tags=['ledger'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_movement(request):
    """Record a movement with optional commission."""
    serializer = MovementCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        recorded = record_movement(
            owner=request.user,
            customer_link_id=data['customer_id'],
            movement_type=data['movement_type'],
            amount=data['amount'],
            currency=data['currency'],
            commission_amount=data.get('commission_amount'),
            note=data.get('note', ''),
        )
    except MovementValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except PartialWriteError as e:
        return Response(
            {'error': str(e), 'rolled_back': e.rolled_back},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    output = RecordedMovementSerializer({
        'primary': recorded.primary,
        'commission': recorded.commission,
        'revision': get_ledger_revision(request.user.id),
    })
    return Response(output.data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=TransferCreateSerializer,
    responses={
        201: RecordedTransferSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        500: PartialWriteResponseSerializer,
    },
    description="Transfer money between two of your customers.",
    tags=['ledger'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_transfer(request):
    """Record an internal transfer."""
    serializer = TransferCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        transfer = record_internal_transfer(
            owner=request.user,
            from_link_id=data['from_customer_id'],
            to_link_id=data['to_customer_id'],
            amount=data['amount'],
            currency=data['currency'],
            commission_amount=data.get('commission_amount'),
            note=data.get('note', ''),
        )
    except MovementValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except PartialWriteError as e:
        return Response(
            {'error': str(e), 'rolled_back': e.rolled_back},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    output = RecordedTransferSerializer({
        'transfer_group_id': transfer.transfer_group_id,
        'incoming': transfer.incoming,
        'outgoing': transfer.outgoing,
        'commission': transfer.commission,
        'revision': get_ledger_revision(request.user.id),
    })
    return Response(output.data, status=status.HTTP_201_CREATED)


@extend_schema(
    methods=['PATCH'],
    request=MovementUpdateSerializer,
    responses={200: MovementSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Edit a movement's amount, currency or note.",
    tags=['ledger'],
)
@extend_schema(
    methods=['DELETE'],
    responses={200: DeletedResponseSerializer, 404: ErrorResponseSerializer},
    description="Delete a movement with its commissions (or both legs of a transfer).",
    tags=['ledger'],
)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def movement_detail(request, movement_id):
    """Edit or delete one movement."""
    if request.method == 'DELETE':
        try:
            deleted = delete_movement(owner=request.user, movement_id=movement_id)
        except MovementNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response({
            'deleted': deleted,
            'revision': get_ledger_revision(request.user.id),
        })

    serializer = MovementUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    try:
        movement = update_movement(
            owner=request.user,
            movement_id=movement_id,
            **serializer.validated_data
        )
    except MovementNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except MovementValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(MovementSerializer(movement).data)


@extend_schema(
    responses={200: RevisionResponseSerializer},
    description="Current ledger revision. Responses older than the revision a view "
                "already shows can be discarded.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ledger_revision(request):
    """Current ledger revision for the owner."""
    return Response({'revision': get_ledger_revision(request.user.id)})
