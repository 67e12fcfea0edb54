import logging

from django.db import DatabaseError
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.ledger.serializers import BalanceLineSerializer
from apps.ledger.signals import get_ledger_revision
from .models import CustomerLink
from .serializers import (
    CustomerSerializer,
    CustomerSummarySerializer,
    LocalCustomerCreateSerializer,
    LocalCustomerUpdateSerializer,
    RegisteredCustomerCreateSerializer,
    ProfileSearchResultSerializer,
    DeletionPreviewSerializer,
)
from .services import (
    search_registered_profiles,
    add_registered_customer,
    add_local_customer,
    update_local_customer,
    get_or_create_profit_loss_customer,
    list_customers,
    get_customer_detail,
    resolve_customer,
    preview_customer_deletion,
    reset_customer_account,
    delete_customer,
    # Exceptions
    CustomerNotFoundError,
    CustomerValidationError,
    DuplicateCustomerError,
    CannotAddSelfError,
    ProfitLossAccountProtectedError,
    OutstandingBalanceError,
)

logger = logging.getLogger(__name__)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    code = serializers.CharField(required=False)


class OutstandingBalanceResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    balances = BalanceLineSerializer(many=True)


class DeletedResponseSerializer(serializers.Serializer):
    deleted_movements = serializers.IntegerField()


def _unavailable():
    logger.exception("Customer fetch failed")
    return Response(
        {'error': 'Customer data is temporarily unavailable, please retry'},
        status=status.HTTP_503_SERVICE_UNAVAILABLE
    )


@extend_schema(
    responses={200: CustomerSummarySerializer(many=True), 503: ErrorResponseSerializer},
    description="Your customers, newest first, with their non-zero balances.",
    tags=['customers'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_list(request):
    """List the owner's customers."""
    # Read before the fetch so a concurrent write can only make it look older
    revision = get_ledger_revision(request.user.id)
    try:
        summaries = list_customers(owner=request.user)
    except DatabaseError:
        return _unavailable()

    return Response({
        'revision': revision,
        'results': CustomerSummarySerializer(summaries, many=True).data,
    })


@extend_schema(
    parameters=[OpenApiParameter('q', str, description="Account number (digits) or username")],
    responses={200: ProfileSearchResultSerializer(many=True), 400: ErrorResponseSerializer},
    description="Find platform users to add as customers.",
    tags=['customers'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def search_profiles(request):
    """Search registered users by account number or username."""
    try:
        profiles = search_registered_profiles(
            owner=request.user,
            query=request.query_params.get('q', ''),
        )
    except CannotAddSelfError as e:
        return Response(
            {'error': str(e), 'code': 'cannot_add_self'},
            status=status.HTTP_400_BAD_REQUEST
        )

    linked = set(
        CustomerLink.objects
        .filter(owner=request.user, registered_user__isnull=False)
        .values_list('registered_user_id', flat=True)
    )
    serializer = ProfileSearchResultSerializer(
        profiles, many=True, context={'linked_user_ids': linked}
    )
    return Response(serializer.data)


@extend_schema(
    request=RegisteredCustomerCreateSerializer,
    responses={
        201: CustomerSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Add a registered platform user to your customers.",
    tags=['customers'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def add_registered(request):
    """Add a registered customer."""
    serializer = RegisteredCustomerCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        link = add_registered_customer(
            owner=request.user,
            registered_user_id=serializer.validated_data['registered_user_id'],
        )
    except CannotAddSelfError as e:
        return Response(
            {'error': str(e), 'code': 'cannot_add_self'},
            status=status.HTTP_400_BAD_REQUEST
        )
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except DuplicateCustomerError as e:
        return Response(
            {'error': str(e), 'code': 'already_added'},
            status=status.HTTP_409_CONFLICT
        )

    return Response(CustomerSerializer(resolve_customer(link)).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=LocalCustomerCreateSerializer,
    responses={201: CustomerSerializer, 400: ErrorResponseSerializer},
    description="Create a local customer (a contact without a platform account).",
    tags=['customers'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def add_local(request):
    """Add a local customer."""
    serializer = LocalCustomerCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        link = add_local_customer(owner=request.user, **serializer.validated_data)
    except CustomerValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(CustomerSerializer(resolve_customer(link)).data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: CustomerSerializer},
    description="Your profit and loss account, created on first use.",
    tags=['customers'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profit_loss(request):
    """Get (or create) the profit and loss customer."""
    link = get_or_create_profit_loss_customer(owner=request.user)
    return Response(CustomerSerializer(resolve_customer(link)).data)


@extend_schema(
    methods=['GET'],
    responses={200: CustomerSummarySerializer, 404: ErrorResponseSerializer},
    description="One customer with balances in currency order.",
    tags=['customers'],
)
@extend_schema(
    methods=['PATCH'],
    request=LocalCustomerUpdateSerializer,
    responses={200: CustomerSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Edit a local customer's name, phone or note.",
    tags=['customers'],
)
@extend_schema(
    methods=['DELETE'],
    parameters=[OpenApiParameter('acknowledge_outstanding', bool, description="Delete even with unsettled balance")],
    responses={
        200: DeletedResponseSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: OutstandingBalanceResponseSerializer,
    },
    description="Delete a customer and all of its movements.",
    tags=['customers'],
)
@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, customer_id):
    """Retrieve, edit or delete one customer."""
    if request.method == 'GET':
        try:
            summary = get_customer_detail(owner=request.user, link_id=customer_id)
        except CustomerNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except DatabaseError:
            return _unavailable()
        return Response(CustomerSummarySerializer(summary).data)

    if request.method == 'PATCH':
        serializer = LocalCustomerUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            link = update_local_customer(
                owner=request.user,
                link_id=customer_id,
                **serializer.validated_data
            )
        except CustomerNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (CustomerValidationError, ProfitLossAccountProtectedError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(CustomerSerializer(resolve_customer(link)).data)

    acknowledge = str(
        request.query_params.get('acknowledge_outstanding')
        or request.data.get('acknowledge_outstanding', '')
    ).lower() in ('1', 'true', 'yes')
    try:
        deleted = delete_customer(
            owner=request.user,
            link_id=customer_id,
            acknowledge_outstanding=acknowledge,
        )
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ProfitLossAccountProtectedError as e:
        return Response(
            {'error': str(e), 'code': 'profit_loss_protected'},
            status=status.HTTP_400_BAD_REQUEST
        )
    except OutstandingBalanceError as e:
        return Response({
            'error': str(e),
            'balances': BalanceLineSerializer(e.balances, many=True).data,
        }, status=status.HTTP_409_CONFLICT)

    return Response({'deleted_movements': deleted})


@extend_schema(
    responses={200: DeletionPreviewSerializer, 404: ErrorResponseSerializer},
    description="What deleting this customer would discard.",
    tags=['customers'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def deletion_preview(request, customer_id):
    """Preview a customer deletion."""
    try:
        preview = preview_customer_deletion(owner=request.user, link_id=customer_id)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response(DeletionPreviewSerializer(preview).data)


@extend_schema(
    request=None,
    responses={200: DeletedResponseSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Delete all movements of a customer but keep the customer.",
    tags=['customers'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reset_account(request, customer_id):
    """Reset a customer's account."""
    try:
        deleted = reset_customer_account(owner=request.user, link_id=customer_id)
    except CustomerNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ProfitLossAccountProtectedError as e:
        return Response(
            {'error': str(e), 'code': 'profit_loss_protected'},
            status=status.HTTP_400_BAD_REQUEST
        )
    return Response({'deleted_movements': deleted})
