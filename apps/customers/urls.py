from django.urls import path

from apps.customers.views import CustomerAPIView, CustomerClearAPIView
from apps.ingestions.views import CustomerImportAPIView

urlpatterns = [
    path("customers", CustomerAPIView.as_view(), name="customers"),
    path("customers/import", CustomerImportAPIView.as_view(), name="customers_import"),
    path("customers/clear", CustomerClearAPIView.as_view(), name="customers_clear"),
]
