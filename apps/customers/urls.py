from django.urls import path
from . import views

app_name = 'customers'

urlpatterns = [
    path('', views.customer_list, name='customer-list'),
    path('search/', views.search_profiles, name='customer-search'),
    path('registered/', views.add_registered, name='add-registered'),
    path('local/', views.add_local, name='add-local'),
    path('profit-loss/', views.profit_loss, name='profit-loss'),
    path('<uuid:customer_id>/', views.customer_detail, name='customer-detail'),
    path('<uuid:customer_id>/deletion-preview/', views.deletion_preview, name='deletion-preview'),
    path('<uuid:customer_id>/reset/', views.reset_account, name='reset'),
]
