from django.urls import path

from apps.ingestions.views import OrderImportAPIView
from apps.orders.views import OrderAPIView

urlpatterns = [
    path("orders", OrderAPIView.as_view(), name="orders"),
    path("orders/import", OrderImportAPIView.as_view(), name="orders_import"),
]
