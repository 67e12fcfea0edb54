from django.urls import path
from . import views

app_name = 'statements'

urlpatterns = [
    path('customers/<uuid:customer_id>/', views.customer_statement, name='customer-statement'),
    path('movements/<uuid:movement_id>/receipt/', views.movement_receipt, name='movement-receipt'),
]
