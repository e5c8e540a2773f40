# apps/analytics/urls.py
from django.urls import path
from .views.sales import SalesReportAPIView

urlpatterns = [
    path("reports/sales", SalesReportAPIView.as_view(), name="sales_report"),
]
