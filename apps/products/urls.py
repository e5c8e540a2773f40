from django.urls import path

from apps.ingestions.views import ProductImportAPIView
from apps.products.views import ProductAPIView, ProductClearAPIView

urlpatterns = [
    path("products", ProductAPIView.as_view(), name="products"),
    path("products/import", ProductImportAPIView.as_view(), name="products_import"),
    path("products/clear", ProductClearAPIView.as_view(), name="products_clear"),
]
