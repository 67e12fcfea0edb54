from django.urls import path
from . import views

app_name = 'ledger'

urlpatterns = [
    # Customer ledger
    path('customers/<uuid:customer_id>/movements/', views.customer_movements, name='customer-movements'),
    path('customers/<uuid:customer_id>/balances/', views.customer_balances, name='customer-balances'),

    # Movements
    path('movements/', views.create_movement, name='movement-create'),
    path('movements/<uuid:movement_id>/', views.movement_detail, name='movement-detail'),
    path('transfers/', views.create_transfer, name='transfer-create'),

    # Refresh
    path('revision/', views.ledger_revision, name='revision'),
]
